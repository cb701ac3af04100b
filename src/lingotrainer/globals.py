from .config import settings
from .session import SessionController
from .vocabulary import VocabularyManager

vocab_manager = VocabularyManager(f"{settings.VOCAB_DIR}")
controller = SessionController(on_difficulty_update=vocab_manager.update_difficulty)


def get_vocab_manager() -> VocabularyManager:
    return vocab_manager


def get_controller() -> SessionController:
    return controller
