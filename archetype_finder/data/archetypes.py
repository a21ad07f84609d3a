from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from archetype_finder.schemas.questionnaire import ARCHETYPES, Archetype


class ArchetypeProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    archetype: Archetype
    description: str
    traits: tuple[str, ...]
    color: str


ARCHETYPE_PROFILES: dict[Archetype, ArchetypeProfile] = {
    p.archetype: p
    for p in (
        ArchetypeProfile(
            archetype=Archetype.INNOCENT,
            description="Optimistic, pure, and honest. Seeks happiness and harmony.",
            traits=("Optimistic", "Pure", "Honest", "Trustworthy", "Happy"),
            color="#fef3c7",
        ),
        ArchetypeProfile(
            archetype=Archetype.EVERYMAN,
            description="Down-to-earth, relatable, and authentic. Values belonging and connection.",
            traits=("Relatable", "Authentic", "Friendly", "Practical", "Inclusive"),
            color="#d1fae5",
        ),
        ArchetypeProfile(
            archetype=Archetype.HERO,
            description="Courageous, determined, and honorable. Rises to challenges.",
            traits=("Courageous", "Determined", "Honorable", "Brave", "Triumphant"),
            color="#fecaca",
        ),
        ArchetypeProfile(
            archetype=Archetype.OUTLAW,
            description="Revolutionary, rebellious, and wild. Breaks rules to create change.",
            traits=("Revolutionary", "Rebellious", "Wild", "Disruptive", "Free"),
            color="#c7d2fe",
        ),
        ArchetypeProfile(
            archetype=Archetype.EXPLORER,
            description="Adventurous, restless, and pioneering. Seeks freedom and new experiences.",
            traits=("Adventurous", "Independent", "Pioneering", "Restless", "Curious"),
            color="#fed7aa",
        ),
        ArchetypeProfile(
            archetype=Archetype.CREATOR,
            description="Imaginative, artistic, and inventive. Values self-expression and innovation.",
            traits=("Creative", "Imaginative", "Artistic", "Inventive", "Original"),
            color="#e9d5ff",
        ),
        ArchetypeProfile(
            archetype=Archetype.RULER,
            description="Authoritative, responsible, and organized. Seeks control and stability.",
            traits=("Authoritative", "Responsible", "Organized", "Leader", "Stable"),
            color="#fde68a",
        ),
        ArchetypeProfile(
            archetype=Archetype.MAGICIAN,
            description="Visionary, inventive, and transformative. Makes dreams reality.",
            traits=("Visionary", "Transformative", "Inventive", "Inspiring", "Mystical"),
            color="#a7f3d0",
        ),
        ArchetypeProfile(
            archetype=Archetype.LOVER,
            description="Passionate, devoted, and intimate. Seeks love and relationships.",
            traits=("Passionate", "Devoted", "Intimate", "Romantic", "Sensual"),
            color="#fbb6ce",
        ),
        ArchetypeProfile(
            archetype=Archetype.CAREGIVER,
            description="Caring, nurturing, and generous. Helps and protects others.",
            traits=("Caring", "Nurturing", "Generous", "Protective", "Selfless"),
            color="#bfdbfe",
        ),
        ArchetypeProfile(
            archetype=Archetype.JESTER,
            description="Playful, humorous, and lighthearted. Brings joy and fun.",
            traits=("Playful", "Humorous", "Lighthearted", "Fun", "Entertaining"),
            color="#fed7d7",
        ),
        ArchetypeProfile(
            archetype=Archetype.SAGE,
            description="Wise, intelligent, and thoughtful. Seeks knowledge and truth.",
            traits=("Wise", "Intelligent", "Thoughtful", "Knowledgeable", "Analytical"),
            color="#d1d5db",
        ),
    )
}


def get_profile(archetype: Archetype | str) -> ArchetypeProfile:
    return ARCHETYPE_PROFILES[Archetype(archetype)]


def all_profiles() -> list[ArchetypeProfile]:
    """Profiles in the stable archetype order."""
    return [ARCHETYPE_PROFILES[a] for a in ARCHETYPES]
