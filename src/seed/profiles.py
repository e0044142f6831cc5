"""Data generation profiles defining volume and data-quality shapes."""

from dataclasses import dataclass


@dataclass
class SeedProfile:
    name: str
    num_incidents: int = 500
    num_assignees: int = 25
    num_callers: int = 120
    shared_user_rate: float = 0.10  # users present in both sources
    num_business_areas: int = 6
    notes_per_incident_min: int = 0
    notes_per_incident_max: int = 5
    attachments_per_incident_max: int = 2
    resolved_rate: float = 0.75
    months_back: int = 12
    # Data-quality noise injected into the raw landing layer
    control_char_rate: float = 0.05
    malformed_timestamp_rate: float = 0.02
    malformed_code_rate: float = 0.02
    unknown_reference_rate: float = 0.03
    short_key_rate: float = 0.0


PROFILES: dict[str, SeedProfile] = {
    "standard": SeedProfile(
        name="standard",
    ),
    "dirty": SeedProfile(
        name="dirty",
        control_char_rate=0.30,
        malformed_timestamp_rate=0.10,
        malformed_code_rate=0.10,
        unknown_reference_rate=0.15,
        short_key_rate=0.02,
    ),
    "clean": SeedProfile(
        name="clean",
        control_char_rate=0.0,
        malformed_timestamp_rate=0.0,
        malformed_code_rate=0.0,
        unknown_reference_rate=0.0,
    ),
    "scale_test": SeedProfile(
        name="scale_test",
        num_incidents=50_000,
        num_assignees=200,
        num_callers=5_000,
    ),
}


def get_profile(name: str) -> SeedProfile:
    if name not in PROFILES:
        raise ValueError(f"Unknown profile '{name}'. Available: {list(PROFILES.keys())}")
    return PROFILES[name]
