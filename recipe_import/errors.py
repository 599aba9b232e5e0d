from typing import Optional


class RecipeImportError(Exception):
    """Base for every error the import pipeline surfaces.

    `stage` names the step that produced it (input, fetch, structured,
    heuristic, ai, ocr) so callers can render a specific message.
    """

    stage = "import"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if stage:
            self.stage = stage

    def to_detail(self) -> dict:
        return {"stage": self.stage, "error": self.message}


class InvalidInput(RecipeImportError):
    stage = "input"


class FetchFailure(RecipeImportError):
    stage = "fetch"


class AIFailure(RecipeImportError):
    stage = "ai"


class OCRFailure(RecipeImportError):
    stage = "ocr"

    def __init__(self, message: str = "Failed to recognize text from image."):
        super().__init__(message)


class HeuristicExtractionEmpty(RecipeImportError):
    stage = "heuristic"

    def __init__(self, message: str = "Could not parse recipe text."):
        super().__init__(message)


class ExtractionFailed(RecipeImportError):
    pass
