"""Random human-readable slugs used as project names."""

import random

_ADJECTIVES = [
    "ancient", "bold", "brave", "bright", "calm", "clever", "cosmic", "crisp", "curious",
    "daring", "eager", "electric", "fancy", "fast", "fluffy", "gentle", "golden", "happy",
    "hidden", "humble", "icy", "jolly", "kind", "lively", "lucky", "mellow", "misty",
    "nimble", "noble", "odd", "polite", "proud", "quick", "quiet", "rapid", "rustic",
    "shiny", "silent", "sleepy", "smooth", "snowy", "sparkling", "spicy", "steady",
    "sunny", "swift", "tall", "tidy", "tiny", "vivid", "wandering", "warm", "wild",
    "wise", "witty", "young", "zany", "zealous",
]

_NOUNS = [
    "apple", "badger", "beacon", "breeze", "canyon", "castle", "cloud", "comet", "coral",
    "dragon", "eagle", "ember", "falcon", "forest", "fox", "galaxy", "garden", "glacier",
    "harbor", "island", "jungle", "lantern", "lemon", "meadow", "meteor", "moon", "mountain",
    "ocean", "otter", "panda", "pebble", "pepper", "planet", "pond", "rabbit", "raven",
    "river", "rocket", "sailor", "shadow", "sparrow", "squirrel", "star", "stone", "sunset",
    "thunder", "tiger", "tulip", "valley", "violet", "whale", "willow", "wolf", "zebra",
]


def generate_slug(words: int = 2, rng: random.Random | None = None) -> str:
    """Generate a kebab-case slug such as ``"brave-otter"``.

    All words but the last are adjectives; the last word is a noun.
    """
    if words < 1:
        raise ValueError("words must be at least 1")
    rng = rng or random.Random()
    parts = [rng.choice(_ADJECTIVES) for _ in range(words - 1)]
    parts.append(rng.choice(_NOUNS))
    return "-".join(parts)
