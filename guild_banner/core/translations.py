"""Localized banner labels."""

from dataclasses import dataclass


DEFAULT_LOCALE = "pt"


@dataclass(frozen=True)
class Labels:
    """Every label the banner prints, for one locale."""

    members_online: str
    boosted_boss: str
    players_online: str
    record: str
    founded: str
    npc_location: str
    special_event: str
    generated_at: str
    timestamp_format: str


TRANSLATIONS: dict[str, Labels] = {
    "pt": Labels(
        members_online="Membros Online",
        boosted_boss="Boss do Dia",
        players_online="Jogadores Online",
        record="Recorde",
        founded="Fundado em",
        npc_location="Rashid está em",
        special_event="Evento Especial Ativo",
        generated_at="Gerado em",
        timestamp_format="%d/%m/%Y %H:%M",
    ),
    "en": Labels(
        members_online="Members Online",
        boosted_boss="Boosted Boss",
        players_online="Players Online",
        record="Record",
        founded="Founded",
        npc_location="Rashid is in",
        special_event="Special Event Active",
        generated_at="Generated at",
        timestamp_format="%Y-%m-%d %H:%M",
    ),
}


def get_labels(lang: str) -> Labels:
    """Labels for ``lang``, falling back to the default locale."""
    return TRANSLATIONS.get((lang or "").lower(), TRANSLATIONS[DEFAULT_LOCALE])
