from __future__ import annotations

from recipe_ocr.ocr.base_ocr import EngineId, OCREngine, OCRResult

MOCK_RECIPE_TEXT = """Grandma's Chocolate Chip Cookies

Ingredients:
- 2 1/4 cups all-purpose flour
- 1 tsp baking soda
- 1 tsp salt
- 1 cup butter, softened
- 3/4 cup granulated sugar
- 2 large eggs
- 2 cups chocolate chips

Instructions:
1. Preheat oven to 375F
2. Mix flour, baking soda, and salt in a bowl
3. Beat butter and sugars until creamy
4. Stir in chocolate chips
5. Bake 9-11 mins until golden brown"""


class MockOCREngine(OCREngine):
    """Returns a canned recipe for any readable image (dev/test, no deps required)."""

    name = "mock"

    def __init__(
        self,
        engine_id: EngineId = EngineId.ON_DEVICE,
        text: str = MOCK_RECIPE_TEXT,
        confidence: float = 0.85,
    ) -> None:
        super().__init__()
        self.engine_id = engine_id
        self.name = f"mock {engine_id.value}"
        self._text = text
        self._confidence = confidence

    async def _recognize(self, image_bytes: bytes, image_format: str) -> OCRResult:
        return OCRResult(text=self._text, confidence=self._confidence)
