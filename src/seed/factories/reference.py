"""Factory for sys_choice, business_area, assignee_user and caller_user records."""

import string

from faker import Faker

from src.seed.profiles import SeedProfile

STATE_CHOICES = [
    (1, "New"),
    (2, "In Progress"),
    (3, "On Hold"),
    (6, "Resolved"),
    (7, "Closed"),
    (8, "Canceled"),
]

PRIORITY_CHOICES = [
    (1, "1 - Critical"),
    (2, "2 - High"),
    (3, "3 - Moderate"),
    (4, "4 - Low"),
    (5, "5 - Planning"),
]

BUSINESS_AREAS = [
    "Finance",
    "Supply Chain",
    "Human Resources",
    "Manufacturing",
    "Sales Operations",
    "Customer Service",
    "Procurement",
    "Logistics",
]


def random_sys_id(rng, length: int = 64) -> str:
    """Fixed-length numeric-string key as the source system issues them."""
    return "".join(rng.choices(string.digits, k=length))


def generate_choices() -> list[dict]:
    choices = []
    for element, values in (("state", STATE_CHOICES), ("priority", PRIORITY_CHOICES)):
        for code, label in values:
            choices.append({
                "sys_id": f"{element}-{code}",
                "name": "incident",
                "element": element,
                "value": str(code),
                "label": label,
            })
    return choices


def generate_business_areas(profile: SeedProfile, rng) -> list[dict]:
    names = BUSINESS_AREAS[: profile.num_business_areas]
    return [{"sys_id": random_sys_id(rng, 32), "name": name} for name in names]


def generate_users(profile: SeedProfile, rng, fake: Faker) -> dict[str, list[dict]]:
    """Generate the two user sources, with some ids present in both.

    Shared ids get a different display name in each source so the merge
    conflict rule is visible in the joined view.
    """
    def make_user(sys_id: str) -> dict:
        name = fake.name()
        return {
            "sys_id": sys_id,
            "name": name,
            "email": f"{name.lower().replace(' ', '.')}@example.com",
        }

    assignees = [make_user(random_sys_id(rng, 32)) for _ in range(profile.num_assignees)]
    callers = [make_user(random_sys_id(rng, 32)) for _ in range(profile.num_callers)]

    shared = int(len(assignees) * profile.shared_user_rate)
    for assignee in rng.sample(assignees, shared):
        callers.append(make_user(assignee["sys_id"]))

    return {"assignees": assignees, "callers": callers}
