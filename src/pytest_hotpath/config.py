"""Configuration loading for pytest-hotpath.

This module reads configuration from the pyproject.toml [tool.pytest-hotpath]
section and provides sensible defaults when configuration is absent.

Example pyproject.toml section::

    [tool.pytest-hotpath]
    paths = ["src/myapp"]
    exclude = ["**/migrations/*"]
    send_to_analytics = true
    analytics_endpoint = "https://metrics.example.com/branches"

    [tool.pytest-hotpath.sampling]
    enabled = true
    sample_rate = 0.1
    max_samples_per_second = 500

    [tool.pytest-hotpath.thresholds]
    hot_min_observations = 50
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, replace
import logging
import tomllib
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from pathlib import Path


logger = logging.getLogger(__name__)

DEFAULT_INCLUDE_PATTERNS = ('**/*.py',)
DEFAULT_EXCLUDE_PATTERNS = ('**/test_*.py', '**/*_test.py', '**/conftest.py', '**/__pycache__/**')
DEFAULT_ANALYTICS_INTERVAL = 30.0


@dataclass
class SamplingConfig:
    """Sampling and rate limiting of recorded branch events.

    Attributes:
        enabled: Apply the sampling gate. When False every event is recorded.
        sample_rate: Fraction of events to keep, between 0 and 1.
        max_samples_per_second: Cap on accepted events per second. Values of
            zero or below disable the cap.
        collect_execution_time: Record how long recording an event took.
    """

    enabled: bool = False
    sample_rate: float = 1.0
    max_samples_per_second: float = 1000
    collect_execution_time: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.sample_rate <= 1.0:
            clamped = min(max(self.sample_rate, 0.0), 1.0)
            logger.warning('sample_rate %r outside [0, 1], using %r', self.sample_rate, clamped)
            self.sample_rate = clamped


@dataclass
class ClassificationThresholds:
    """Thresholds for classifying observed branches.

    A branch is hot when it was observed at least ``hot_min_observations``
    times and was true for at least ``hot_min_hit_rate`` of them. A branch
    that is neither dead nor hot is cold when it was observed at most
    ``cold_max_observations`` times.
    """

    hot_min_observations: int = 100
    hot_min_hit_rate: float = 0.8
    cold_max_observations: int = 5


@dataclass
class HotpathConfig:
    """Configuration for pytest-hotpath.

    Attributes:
        enabled: Master switch for instrumentation and collection.
        sampling: Sampling gate settings.
        paths: Paths to scan for source files to instrument. None means the
            project root.
        include_patterns: Glob-like patterns a file must match to be
            instrumented. Empty means every file.
        exclude_patterns: Glob-like patterns that exclude a file. Exclusion
            wins over inclusion.
        send_to_analytics: Push snapshots to ``analytics_endpoint``.
        analytics_endpoint: URL receiving execution-summary events.
        analytics_interval: Seconds between periodic analytics pushes.
        thresholds: Hot/cold classification thresholds.
    """

    enabled: bool = True
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    paths: list[str] | None = None
    include_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS))
    exclude_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    send_to_analytics: bool = False
    analytics_endpoint: str | None = None
    analytics_interval: float = DEFAULT_ANALYTICS_INTERVAL
    thresholds: ClassificationThresholds = field(default_factory=ClassificationThresholds)

    def merged(self, partial: Mapping[str, Any]) -> HotpathConfig:
        """Return a copy with ``partial`` applied on top of this configuration.

        Top-level keys replace values; ``sampling`` and ``thresholds`` may be
        given as mappings and are merged into the nested settings.

        Args:
            partial: Field names mapped to new values.

        Returns:
            A new HotpathConfig.

        Raises:
            TypeError: If ``partial`` names an unknown field.
        """
        changes = dict(partial)
        sampling = changes.pop('sampling', None)
        if isinstance(sampling, Mapping):
            changes['sampling'] = replace(self.sampling, **sampling)
        elif sampling is not None:
            changes['sampling'] = sampling
        thresholds = changes.pop('thresholds', None)
        if isinstance(thresholds, Mapping):
            changes['thresholds'] = replace(self.thresholds, **thresholds)
        elif thresholds is not None:
            changes['thresholds'] = thresholds
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as plain JSON-ready data."""
        return asdict(self)


def load_config(rootdir: Path) -> HotpathConfig:
    """Load configuration from pyproject.toml.

    Reads the [tool.pytest-hotpath] section from pyproject.toml in the
    given directory. Returns default configuration if the file or section
    does not exist.

    Args:
        rootdir: Directory containing pyproject.toml.

    Returns:
        HotpathConfig with values from pyproject.toml or defaults.
    """
    pyproject_path = rootdir / 'pyproject.toml'

    if not pyproject_path.exists():
        return HotpathConfig()

    with pyproject_path.open('rb') as f:
        data = tomllib.load(f)

    tool_config = data.get('tool', {}).get('pytest-hotpath', {})
    return config_from_mapping(tool_config)


def config_from_mapping(tool_config: Mapping[str, Any]) -> HotpathConfig:
    """Build a HotpathConfig from a [tool.pytest-hotpath] style mapping.

    Unknown keys are ignored.

    Args:
        tool_config: The parsed TOML section.

    Returns:
        HotpathConfig with defaults for anything not given.
    """
    defaults = HotpathConfig()
    sampling_data = tool_config.get('sampling', {})
    thresholds_data = tool_config.get('thresholds', {})

    sampling = SamplingConfig(
        enabled=sampling_data.get('enabled', defaults.sampling.enabled),
        sample_rate=float(sampling_data.get('sample_rate', defaults.sampling.sample_rate)),
        max_samples_per_second=sampling_data.get('max_samples_per_second', defaults.sampling.max_samples_per_second),
        collect_execution_time=sampling_data.get('collect_execution_time', defaults.sampling.collect_execution_time),
    )
    thresholds = ClassificationThresholds(
        hot_min_observations=thresholds_data.get('hot_min_observations', defaults.thresholds.hot_min_observations),
        hot_min_hit_rate=thresholds_data.get('hot_min_hit_rate', defaults.thresholds.hot_min_hit_rate),
        cold_max_observations=thresholds_data.get('cold_max_observations', defaults.thresholds.cold_max_observations),
    )

    return HotpathConfig(
        enabled=tool_config.get('enabled', defaults.enabled),
        sampling=sampling,
        paths=tool_config.get('paths'),
        include_patterns=tool_config.get('include', defaults.include_patterns),
        exclude_patterns=tool_config.get('exclude', defaults.exclude_patterns),
        send_to_analytics=tool_config.get('send_to_analytics', defaults.send_to_analytics),
        analytics_endpoint=tool_config.get('analytics_endpoint'),
        analytics_interval=tool_config.get('analytics_interval', defaults.analytics_interval),
        thresholds=thresholds,
    )


def merge_configs(
    file_config: HotpathConfig,
    cli_targets: str | None = None,
    cli_sample_rate: float | None = None,
) -> HotpathConfig:
    """Merge CLI arguments with file configuration.

    CLI arguments take precedence over pyproject.toml configuration.
    Empty strings are treated as not provided. Giving a sample rate on the
    command line also turns sampling on.

    Args:
        file_config: Configuration loaded from pyproject.toml.
        cli_targets: Comma-separated target paths from CLI (--hotpath-targets).
        cli_sample_rate: Sample rate from CLI (--hotpath-sample-rate).

    Returns:
        HotpathConfig with CLI values overriding file config where provided.
    """
    changes: dict[str, Any] = {}

    if cli_targets and cli_targets.strip():
        changes['paths'] = [p.strip() for p in cli_targets.split(',') if p.strip()]

    if cli_sample_rate is not None:
        changes['sampling'] = {'enabled': True, 'sample_rate': cli_sample_rate}

    return file_config.merged(changes)
