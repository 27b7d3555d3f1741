# core/models.py
"""
Datenmodelle für die Staged-Thinking Pipeline.
Host-Adapter transformieren ihre Chat-Daten zu ChatContext / ChatMessage.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Tuple, Dict, Any


@dataclass
class ChatMessage:
    """Eine Nachricht im Transcript des Hosts."""
    mes: str
    is_user: bool = False
    name: Optional[str] = None
    send_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        send_date = data.get("send_date")
        return cls(
            mes=data.get("mes", "") or "",
            is_user=bool(data.get("is_user", False)),
            name=data.get("name"),
            send_date=str(send_date) if send_date not in (None, "") else None,
        )


@dataclass
class ChatContext:
    """
    Aktuelle Session-Identität + Transcript.
    character_name = Name der aktiven Persona, user_name = Name des Users.
    """
    character_name: Optional[str] = None
    user_name: Optional[str] = None
    chat: List[ChatMessage] = field(default_factory=list)

    @property
    def last_message(self) -> Optional[ChatMessage]:
        return self.chat[-1] if self.chat else None

    @classmethod
    def from_host(cls, data: Dict[str, Any]) -> "ChatContext":
        """
        Host-Format:
        {"name1": "Danny", "characterId": 0, "characters": [{"name": "Aria"}], "chat": [...]}
        """
        characters = data.get("characters") or []
        char_id = data.get("characterId")
        character_name = None
        try:
            character_name = characters[int(char_id)].get("name")
        except (TypeError, ValueError, IndexError, AttributeError):
            pass
        return cls(
            character_name=character_name,
            user_name=data.get("name1"),
            chat=[ChatMessage.from_dict(m) for m in data.get("chat") or []],
        )


@dataclass(frozen=True)
class StageDefinition:
    name: str
    prompt: str


@dataclass(frozen=True)
class StageDocument:
    """Geladenes Stage-Dokument: geordnete Stages + abschließende Anweisung."""
    stages: Tuple[StageDefinition, ...]
    final_prompt: str = ""

    @property
    def stage_names(self) -> List[str]:
        return [s.name for s in self.stages]


@dataclass(frozen=True)
class StageResult:
    name: str
    content: str


@dataclass(frozen=True)
class PipelineOutput:
    accumulated_thinking: str
    stage_results: Tuple[StageResult, ...]
    final_prompt: str

    @property
    def has_thinking(self) -> bool:
        return bool(self.accumulated_thinking.strip())


@dataclass(frozen=True)
class AdmissionDecision:
    """Ergebnis des TriggerGate. Kein Fehler, nur Kontrollfluss."""
    admitted: bool
    reason: str
    message_key: Optional[str] = None
