"""Factory for incident, sys_journal_field and sys_attachment records.

Values are written the way the raw landing layer holds them: text only,
with a configurable share of control bytes, unparseable timestamps and
codes, dangling references and truncated keys.
"""

from datetime import datetime, timedelta, timezone

from faker import Faker

from src.seed.factories.reference import PRIORITY_CHOICES, STATE_CHOICES, random_sys_id
from src.seed.profiles import SeedProfile

PROCESSES = [
    "Invoice",
    "Payroll",
    "Replenishment",
    "Onboarding",
    "Shipment",
    "Reconciliation",
    "Forecast",
    "Quote",
]

FAILURE_PHRASES = [
    "failed with timeout",
    "job aborted",
    "stuck in queue",
    "returned error 500",
    "missing upstream file",
]

CONTROL_CHARS = ["\x00", "\x07", "\t", "\r\n", "\x1b", " "]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _noisy(value: str, rng, rate: float) -> str:
    if value and rng.random() < rate:
        position = rng.randint(0, len(value))
        return value[:position] + rng.choice(CONTROL_CHARS) + value[position:]
    return value


def _description(rng) -> str:
    process = rng.choice(PROCESSES)
    phrase = rng.choice(FAILURE_PHRASES)
    prefix = rng.choice(["Process ", "PROCESS: ", "process ", ""])
    return f"{prefix}{process} {phrase}"


def generate_incidents(
    profile: SeedProfile,
    users: dict[str, list[dict]],
    business_areas: list[dict],
    rng,
    now: datetime | None = None,
) -> list[dict]:
    now = now or datetime.now(timezone.utc)
    assignee_ids = [u["sys_id"] for u in users["assignees"]]
    caller_ids = [u["sys_id"] for u in users["callers"]]
    area_ids = [a["sys_id"] for a in business_areas]

    incidents = []
    for i in range(profile.num_incidents):
        sys_id = random_sys_id(rng)
        if rng.random() < profile.short_key_rate:
            sys_id = sys_id[: rng.randint(10, 63)]

        opened = now - timedelta(
            days=rng.randint(0, profile.months_back * 30), minutes=rng.randint(0, 1439)
        )
        resolved = closed = None
        if rng.random() < profile.resolved_rate:
            resolved = opened + timedelta(minutes=rng.randint(5, 14 * 1440))
            closed = resolved + timedelta(days=rng.randint(0, 7))

        state = rng.choice(STATE_CHOICES[3:] if resolved else STATE_CHOICES[:3])[0]
        priority = rng.choice(PRIORITY_CHOICES)[0]

        def ref(ids: list[str]) -> str:
            if rng.random() < profile.unknown_reference_rate:
                return random_sys_id(rng, 32)
            return rng.choice(ids)

        def stamp(value: datetime | None) -> str | None:
            if value is None:
                return None
            if rng.random() < profile.malformed_timestamp_rate:
                return rng.choice(["N/A", "31/02/2024 25:61", "yesterday"])
            return value.strftime(TIMESTAMP_FORMAT)

        def code(value: int) -> str:
            if rng.random() < profile.malformed_code_rate:
                return rng.choice(["", "high", "?"])
            return str(value)

        incidents.append({
            "sys_id": _noisy(sys_id, rng, profile.control_char_rate),
            "number": f"INC{i + 1:07d}",
            "short_description": _noisy(_description(rng), rng, profile.control_char_rate),
            "state": code(state),
            "priority": code(priority),
            "opened_at": stamp(opened),
            "resolved_at": stamp(resolved),
            "closed_at": stamp(closed),
            "assigned_to": ref(assignee_ids) if rng.random() < 0.9 else "",
            "caller_id": _noisy(ref(caller_ids), rng, profile.control_char_rate),
            "business_area": ref(area_ids),
        })
    return incidents


def generate_work_notes(
    incidents: list[dict],
    profile: SeedProfile,
    rng,
    fake: Faker,
    now: datetime | None = None,
) -> list[dict]:
    fallback = (now or datetime.now(timezone.utc)).replace(tzinfo=None)
    notes = []
    for incident in incidents:
        count = rng.randint(profile.notes_per_incident_min, profile.notes_per_incident_max)
        try:
            base = datetime.strptime(incident["opened_at"] or "", TIMESTAMP_FORMAT)
        except ValueError:
            # malformed or missing opened_at
            base = fallback
        for _ in range(count):
            created = base + timedelta(minutes=rng.randint(1, 20_000))
            notes.append({
                "sys_id": random_sys_id(rng, 32),
                "element_id": incident["sys_id"],
                "element": "work_notes",
                "name": "incident",
                "value": _noisy(fake.sentence(nb_words=10), rng, profile.control_char_rate),
                "sys_created_on": created.strftime(TIMESTAMP_FORMAT),
            })
    return notes


def generate_attachments(incidents: list[dict], profile: SeedProfile, rng, fake: Faker) -> list[dict]:
    attachments = []
    for incident in incidents:
        for _ in range(rng.randint(0, profile.attachments_per_incident_max)):
            attachments.append({
                "sys_id": random_sys_id(rng, 32),
                "table_name": "incident",
                "table_sys_id": incident["sys_id"],
                "file_name": fake.file_name(category="text"),
                "content_type": "text/plain",
                "size_bytes": str(rng.randint(100, 5_000_000)),
                "sys_created_on": incident["opened_at"],
            })
    return attachments
