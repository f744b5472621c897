# detected objects -> card concept (title, description, rarity, tags).
import random
from typing import Any, Dict, List, Optional

CHARACTER_PATTERNS = {
    # Star Wars
    "yoda": [
        "green", "ears", "small", "jedi", "master", "wise", "old", "force",
        "lightsaber", "dagobah", "swamp", "robes", "staff", "cane",
    ],
    "darth vader": [
        "mask", "black", "helmet", "cape", "breathing", "sith", "dark",
        "empire", "armor", "red lightsaber", "chest panel",
    ],
    "luke skywalker": [
        "jedi", "blonde", "young", "lightsaber", "rebel", "pilot",
        "tatooine", "farmboy", "x-wing",
    ],
    "princess leia": [
        "buns", "hair", "white dress", "rebel", "princess", "leader",
        "blaster", "alderaan",
    ],
    "han solo": [
        "smuggler", "vest", "blaster", "falcon", "pilot", "cocky",
        "scoundrel", "carbonite",
    ],
    "chewbacca": [
        "wookiee", "furry", "tall", "brown", "bowcaster", "roar",
        "hair", "beast", "loyal",
    ],
    "r2d2": [
        "droid", "blue", "white", "beeps", "astromech", "short",
        "cylindrical", "robot",
    ],
    "c3po": [
        "droid", "gold", "protocol", "tall", "humanoid", "worried",
        "fussy", "golden",
    ],
    # Marvel
    "spider-man": [
        "web", "red", "blue", "mask", "spider", "new york", "hero",
        "wall crawler", "spidey",
    ],
    "iron man": [
        "armor", "red", "gold", "arc reactor", "tony stark", "tech",
        "suit", "repulsors",
    ],
    "captain america": [
        "shield", "star", "red white blue", "super soldier", "steve rogers",
        "america", "patriot",
    ],
    "hulk": [
        "green", "big", "angry", "smash", "muscles", "bruce banner",
        "rage", "strong",
    ],
    "thor": [
        "hammer", "mjolnir", "cape", "asgard", "god", "thunder",
        "blonde", "armor",
    ],
    # DC
    "batman": [
        "cape", "cowl", "dark", "gotham", "bat", "utility belt",
        "grappling hook", "bruce wayne",
    ],
    "superman": [
        "cape", "red", "blue", "s symbol", "clark kent", "flight",
        "strong", "krypton",
    ],
}

CREATIVE_TITLES = {
    "yoda": [
        "Jedi Grand Master Yoda",
        "Yoda the Wise",
        "Master Yoda of Dagobah",
        "The Ancient Jedi Master",
        "Yoda, Teacher of Jedi",
    ],
    "darth vader": [
        "Darth Vader, Dark Lord of the Sith",
        "Vader the Fallen",
        "The Dark Lord Vader",
        "Sith Lord Darth Vader",
        "Vader, Chosen One Turned Dark",
    ],
    "luke skywalker": [
        "Luke Skywalker, Jedi Knight",
        "The Last Hope",
        "Skywalker the Hero",
        "Jedi Master Luke",
        "Luke, Son of Anakin",
    ],
    # object based
    "mask": [
        "The Mysterious Masked Figure",
        "Guardian of Secrets",
        "The Hidden Identity",
        "Masked Protector",
        "The Enigmatic One",
    ],
    "sword": [
        "Legendary Blade Master",
        "The Sword Bearer",
        "Warrior of the Blade",
        "Ancient Swordsman",
        "Master of Steel",
    ],
    "armor": [
        "The Armored Guardian",
        "Knight of Protection",
        "Defender in Steel",
        "The Shielded Warrior",
        "Armored Champion",
    ],
    "robot": [
        "Mechanical Guardian",
        "The Steel Sentinel",
        "Robotic Protector",
        "Machine Warrior",
        "The Automated Hero",
    ],
    "unknown": [
        "The Mysterious Entity",
        "Guardian of the Unknown",
        "The Enigmatic Presence",
        "Keeper of Secrets",
        "The Hidden Power",
    ],
}

CREATIVE_DESCRIPTIONS = {
    "yoda": [
        "Ancient Jedi Master with 900 years of wisdom and unparalleled Force abilities.",
        "The wisest of all Jedi, teacher to generations of Force users.",
        "Small in stature but mighty in the Force, this legendary master guides all Jedi.",
        "From the swamps of Dagobah, this green sage holds the secrets of the Force.",
    ],
    "darth vader": [
        "Once the chosen one, now a dark lord consumed by the power of the Sith.",
        "Fallen Jedi Knight encased in black armor, breathing mechanically through the Force.",
        "The Emperor's right hand, feared across the galaxy for his ruthless power.",
        "Former Anakin Skywalker, now twisted by darkness and mechanical augmentation.",
    ],
    "mask": [
        "A mysterious figure whose true identity remains hidden behind an enigmatic mask.",
        "The concealed guardian whose face is known to none but whose legend echoes through time.",
        "Behind this mask lies power unknown, secrets untold, and mysteries unsolved.",
        "A protector whose identity is sacred, whose purpose is noble, whose face is forbidden.",
    ],
    "unknown": [
        "An enigmatic presence with powers beyond mortal comprehension.",
        "A mysterious entity whose origins are lost to time but whose influence shapes destiny.",
        "The guardian of secrets, keeper of ancient knowledge, protector of the unknown.",
        "A figure of legend whose true nature transcends ordinary understanding.",
    ],
}

STAR_WARS = ("yoda", "darth vader", "luke skywalker", "han solo", "princess leia", "chewbacca")
MARVEL = ("spider-man", "iron man", "captain america", "hulk", "thor")
DC = ("batman", "superman")

FALLBACK_CONCEPTS = [
    {
        "title": "The Enigmatic Guardian",
        "description": "A mysterious protector whose true nature defies understanding.",
        "rarity": "rare",
        "tags": ["mysterious", "guardian", "enigmatic", "powerful"],
    },
    {
        "title": "Ancient Artifact",
        "description": "A relic of immense power from a forgotten civilization.",
        "rarity": "ultra-rare",
        "tags": ["ancient", "artifact", "power", "forgotten"],
    },
    {
        "title": "The Unknown Hero",
        "description": "A champion whose deeds echo through eternity, identity shrouded in legend.",
        "rarity": "legendary",
        "tags": ["hero", "champion", "legend", "eternal"],
    },
]


def find_character_by_patterns(detected_objects: List[str]) -> Optional[str]:
    """Two pattern hits, or one hit on a distinctive (longer than 4 chars) pattern."""
    search_terms = " ".join(detected_objects).lower()

    for character, patterns in CHARACTER_PATTERNS.items():
        hits = [p for p in patterns if p in search_terms]
        if len(hits) >= 2:
            return character
        if any(len(p) > 4 for p in hits):
            return character
    return None


def character_rarity(character: str) -> str:
    if character in ("yoda", "darth vader", "luke skywalker"):
        return "legendary"
    if character in ("han solo", "princess leia", "chewbacca", "spider-man", "iron man"):
        return "rare"
    return "uncommon"


def tags_for_character(character: str) -> List[str]:
    tags = list(CHARACTER_PATTERNS.get(character, ["mysterious"])[:4])
    if character in STAR_WARS:
        tags += ["star wars", "galaxy", "force"]
    elif character in MARVEL:
        tags += ["marvel", "superhero", "avenger"]
    elif character in DC:
        tags += ["dc", "superhero", "justice league"]
    return tags[:6]


def character_concept(character: str, rng=None) -> Dict[str, Any]:
    rng = rng or random
    titles = CREATIVE_TITLES.get(character, CREATIVE_TITLES["unknown"])
    descriptions = CREATIVE_DESCRIPTIONS.get(character, CREATIVE_DESCRIPTIONS["unknown"])
    return {
        "title": rng.choice(titles),
        "description": rng.choice(descriptions),
        "rarity": character_rarity(character),
        "tags": tags_for_character(character),
    }


def object_concept(obj: str, rng=None) -> Dict[str, Any]:
    rng = rng or random
    titles = CREATIVE_TITLES.get(obj, CREATIVE_TITLES["unknown"])
    descriptions = CREATIVE_DESCRIPTIONS.get(obj, CREATIVE_DESCRIPTIONS["unknown"])
    return {
        "title": rng.choice(titles),
        "description": rng.choice(descriptions),
        "rarity": "uncommon",
        "tags": [obj, "mysterious", "legendary", "unique"],
    }


def fallback_concept(rng=None) -> Dict[str, Any]:
    rng = rng or random
    concept = rng.choice(FALLBACK_CONCEPTS)
    return {**concept, "tags": list(concept["tags"])}


def objects_to_card_concept(detected_objects: List[str], rng=None) -> Dict[str, Any]:
    if not detected_objects:
        return fallback_concept(rng)

    character = find_character_by_patterns(detected_objects)
    if character:
        return character_concept(character, rng)

    return object_concept(detected_objects[0].lower(), rng)
