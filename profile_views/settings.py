"""
Pipeline settings: tuning constants for marker derivation and display.

The host application may send its own values (e.g. from user preferences);
Python defines the defaults here for tests and documentation.
"""

import hashlib
import json
import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional


def _default_schema_policy() -> Dict[str, bool]:
    return {
        'marker-chart': True,
        'marker-table': True,
        'timeline-overview': False,
        'timeline-memory': False,
        'timeline-ipc': False,
        'timeline-fileio': False,
        'stack-chart': False,
    }


@dataclass(frozen=True)
class PipelineSettings:
    """
    All tuning constants used by the derivation pipeline.

    Instances are frozen: a settings change produces a new object, which the
    selector cache sees as a changed input.
    """

    # ── Derivation ────────────────────────────────────────────

    jank_threshold_ms: float = 50
    """Responsiveness delta above which a Jank marker is synthesized."""

    # ── Display ───────────────────────────────────────────────

    max_description_characters: int = 500
    """Marker table labels are truncated past this length."""

    heaviest_path_max_depth: int = 200
    """Depth limit when expanding the heaviest call path."""

    significant_digits: int = 2
    max_fractional_digits: int = 3

    allow_markers_with_no_schema: Dict[str, bool] = field(default_factory=_default_schema_policy)
    """Per display location: keep markers that have no schema at all."""

    def allows_markers_with_no_schema(self, display_location: str) -> bool:
        return self.allow_markers_with_no_schema.get(display_location, False)


def settings_from_dict(d: Optional[Dict[str, Any]]) -> PipelineSettings:
    """
    Construct PipelineSettings from a dict (e.g. from a request body).

    Missing fields use Python defaults. Extra fields are ignored.
    """
    if not d:
        return PipelineSettings()

    kwargs = {}
    for field_name, settings_field in PipelineSettings.__dataclass_fields__.items():
        if field_name not in d:
            continue
        val = d[field_name]
        if field_name == 'allow_markers_with_no_schema':
            if isinstance(val, dict):
                policy = _default_schema_policy()
                policy.update({str(k): bool(v) for k, v in val.items()})
                kwargs[field_name] = policy
        elif isinstance(val, (int, float)) and not isinstance(val, bool) and math.isfinite(val):
            kwargs[field_name] = int(val) if settings_field.type in (int, 'int') else float(val)
    return PipelineSettings(**kwargs)


def compute_settings_signature(settings: PipelineSettings) -> str:
    """
    Compute a deterministic hash of the settings.

    The signature is a hex SHA-256 truncated to 16 characters.
    """
    d = asdict(settings)
    canonical = json.dumps(d, sort_keys=True, separators=(',', ':'))
    digest = hashlib.sha256(canonical.encode('utf-8')).hexdigest()
    return digest[:16]
