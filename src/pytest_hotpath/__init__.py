"""pytest-hotpath: runtime branch statistics for pytest.

Find the branches your tests never take, and the ones they take all the time.

pytest-hotpath instruments the conditional branches of your source code
(if/elif tests, conditional expressions, and/or operands, match cases and
f-string guards), counts how often each one evaluates true and false while
your tests run, and classifies branches as dead, cold or hot.

Example:
    Instrument the project and print a branch report::

        $ pytest --hotpath

    Instrument selected packages only, sampling 10% of events::

        $ pytest --hotpath --hotpath-targets=src/myapp --hotpath-sample-rate=0.1

    Write the full data as JSON::

        $ pytest --hotpath --hotpath-report=json --hotpath-output=branches.json
"""

from __future__ import annotations


__version__ = '0.1.0'
__all__ = ['__version__']
