class StudyError(Exception):
    """Base class for faults raised by the study engine."""

    code = "study_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class InvalidInput(StudyError):
    """The answer is malformed."""

    code = "invalid_input"


class InvalidState(StudyError):
    """A word's score is outside the legal range."""

    code = "invalid_state"


class EmptyDeck(StudyError):
    """No words available."""

    code = "empty_deck"


class NothingToRollback(StudyError):
    """There is no answer to undo."""

    code = "nothing_to_rollback"


class NoActiveSession(StudyError):
    """No study session is active."""

    code = "no_active_session"


class InvalidNavigation(StudyError):
    """There is no word to move to."""

    code = "invalid_navigation"


class WordAlreadyAnswered(StudyError):
    """This word was already answered in the current session."""

    code = "word_already_answered"
