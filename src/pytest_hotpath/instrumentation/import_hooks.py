"""Meta path hooks that load instrumented modules in place of their sources.

Instrumented trees are built once, before the test session imports anything.
When a module with an instrumented tree is imported, HotpathFinder answers
with a spec whose HotpathLoader compiles that tree and runs it in the fresh
module, after binding the recording functions given at registration
(normally ``recording_functions(collector)`` for the session collector). Modules
without an instrumented tree fall through to the regular finders.

Example:
    >>> from pytest_hotpath.instrumentation.transformer import recording_functions, transform_source
    >>> from pytest_hotpath.runtime.collector import BranchCollector
    >>> _, tree = transform_source('ready = True', 'doc_mod.py')
    >>> modules = {'_hotpath_doc_mod': InstrumentedModule(tree)}
    >>> register_import_hooks(modules, recording_functions(BranchCollector()))
    >>> unregister_import_hooks()
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib.abc import Loader, MetaPathFinder
from importlib.machinery import ModuleSpec
from pathlib import Path
import sys
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    import ast
    from collections.abc import Callable, Mapping, Sequence
    import types


@dataclass(frozen=True)
class InstrumentedModule:
    """An instrumented module ready to be imported.

    Attributes:
        tree: The instrumented AST.
        origin: Path of the original source file, if any.
        is_package: True when the source is a package ``__init__.py``.
    """

    tree: ast.Module
    origin: str | None = None
    is_package: bool = False


class HotpathLoader(Loader):
    """Runs one instrumented tree as the body of a module."""

    def __init__(
        self, module: InstrumentedModule, module_name: str, recording: Mapping[str, Callable[..., Any]]
    ) -> None:
        """Create a loader for one module.

        Args:
            module: Instrumented tree and location of the module.
            module_name: Dotted name the module is imported under.
            recording: Functions bound in the module namespace, by name,
                before the body runs.
        """
        self._module = module
        self._module_name = module_name
        self._recording = recording

    def create_module(self, spec: ModuleSpec) -> types.ModuleType | None:  # noqa: ARG002
        return None

    def exec_module(self, module: types.ModuleType) -> None:
        """Bind the recording functions, then run the instrumented tree."""
        for name, function in self._recording.items():
            setattr(module, name, function)

        # Tracebacks point at the original file when it is known.
        filename = self._module.origin or self._module_name
        code = compile(self._module.tree, filename, 'exec')
        exec(code, module.__dict__)  # noqa: S102


class HotpathFinder(MetaPathFinder):
    """Finder that intercepts imports for instrumented modules."""

    def __init__(
        self,
        instrumented_modules: dict[str, InstrumentedModule],
        recording: Mapping[str, Callable[..., Any]],
    ) -> None:
        """Initialize the finder.

        Args:
            instrumented_modules: Mapping of module names to instrumented modules.
            recording: Functions bound in each module, by name.
        """
        self._instrumented_modules = instrumented_modules
        self._recording = recording

    def find_spec(
        self,
        fullname: str,
        path: Sequence[str] | None,  # noqa: ARG002
        target: types.ModuleType | None = None,  # noqa: ARG002
    ) -> ModuleSpec | None:
        """Return a spec backed by HotpathLoader, or None for other modules."""
        module = self._instrumented_modules.get(fullname)
        if module is None:
            return None

        loader = HotpathLoader(module, fullname, self._recording)
        spec = ModuleSpec(fullname, loader, origin=module.origin, is_package=module.is_package)
        if module.origin is not None:
            spec.has_location = True
            if module.is_package:
                spec.submodule_search_locations = [str(Path(module.origin).parent)]
        return spec


_registered_finder: HotpathFinder | None = None


def register_import_hooks(
    instrumented_modules: dict[str, InstrumentedModule],
    recording: Mapping[str, Callable[..., Any]],
) -> None:
    """Put a HotpathFinder in front of sys.meta_path.

    Any finder registered earlier is removed first, so at most one is active.

    Args:
        instrumented_modules: Mapping of module names to instrumented modules.
        recording: Recording functions by name, usually
            ``recording_functions(collector)``.
    """
    global _registered_finder  # noqa: PLW0603
    unregister_import_hooks()

    _registered_finder = HotpathFinder(instrumented_modules, recording)
    sys.meta_path.insert(0, _registered_finder)


def unregister_import_hooks() -> None:
    """Remove every HotpathFinder from sys.meta_path. Idempotent."""
    global _registered_finder  # noqa: PLW0603

    if _registered_finder is not None and _registered_finder in sys.meta_path:
        sys.meta_path.remove(_registered_finder)

    _registered_finder = None

    sys.meta_path[:] = [f for f in sys.meta_path if not isinstance(f, HotpathFinder)]
