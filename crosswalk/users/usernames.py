# crosswalk/users/usernames.py
"""
Random display names for new accounts, e.g. "brave-otter42".

Names are at most 15 characters and always satisfy the PATCH /auth/me rule
(2-20 characters of letters, digits, "_" and "-").
"""

import random
import re
from typing import Optional

MAX_LENGTH = 15
NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

_ADJECTIVES = [
    "brave", "calm", "eager", "fancy", "gentle", "happy", "jolly", "kind",
    "lively", "merry", "nimble", "proud", "quick", "silly", "sunny", "witty",
    "zesty", "bold", "cosmic", "dusty", "fuzzy", "lucky", "mellow", "rusty",
]

_NOUNS = [
    "otter", "falcon", "panda", "koala", "lemur", "tiger", "walrus", "badger",
    "comet", "pebble", "maple", "cactus", "meadow", "river", "canyon", "harbor",
    "fox", "owl", "yak", "heron", "moose", "bison", "gecko", "raven",
]


def generate_username(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    base = f"{rng.choice(_ADJECTIVES)}-{rng.choice(_NOUNS)}"
    suffix = str(rng.randint(0, 99))
    return (base + suffix)[:MAX_LENGTH]


def is_valid_username(name: str) -> bool:
    return 2 <= len(name) <= 20 and bool(NAME_PATTERN.match(name))
