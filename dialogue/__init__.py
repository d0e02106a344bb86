"""
Dialogue module - scripted NPC conversations.

Provides:
- Script reading and parsing into an immutable AST
- Expression evaluation against quest state
- Global and per-speaker variable scopes with an explicit manifest
- #NAME placeholder substitution
- Conversation sessions with guarded options and atomic purchases
- Offline content lint
"""

from dialogue.collaborators import CANCEL, Economy, MenuEntry, Presenter, WalletEconomy
from dialogue.components import DialogueSpeaker
from dialogue.config import DialogueConfig
from dialogue.environment import Environment, Scope, ScopeManifest, VarType
from dialogue.errors import EvalError, ParseError, ScopeError, ScriptError
from dialogue.library import ScriptLibrary
from dialogue.manager import DialogueManager
from dialogue.placeholders import LoreContext
from dialogue.script import Script, parse_script
from dialogue.session import ConversationSession, SessionOutcome, SessionState

__all__ = [
    "CANCEL",
    "Economy",
    "MenuEntry",
    "Presenter",
    "WalletEconomy",
    "DialogueSpeaker",
    "DialogueConfig",
    "Environment",
    "Scope",
    "ScopeManifest",
    "VarType",
    "EvalError",
    "ParseError",
    "ScopeError",
    "ScriptError",
    "ScriptLibrary",
    "DialogueManager",
    "LoreContext",
    "Script",
    "parse_script",
    "ConversationSession",
    "SessionOutcome",
    "SessionState",
]
