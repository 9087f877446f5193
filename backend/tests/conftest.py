import pytest

from backend.rasoi.core.progress_store import MemoryStore
from backend.rasoi.models.recipe import LanguageCode, RecipeDocument

TOMATO_SOUP = (
    "**Name:** Tomato Soup\n"
    "**Ingredients:**\n"
    "* Tomato\n"
    "* Salt\n"
    "**Instructions:**\n"
    "1. Boil for 5 minutes\n"
    "2. Serve hot"
)

MASALA_CHAI = """**Name:** Masala Chai

**Ingredients:**
* 2 cups water
* 1 cup milk
* 2 tsp tea leaves
Use fresh ginger if you have it.

**Instructions:**
1. Boil the water for 3 minutes.
2. Add tea leaves and simmer for 2 mins.
3. Pour in the milk and bring to a boil.
4. Strain and serve hot.

**Approximate Nutritional Value**
* Calories: 120 kcal
* **Protein:** 4 g
* Fat:

**Hindi Translation:**

**नाम:** मसाला चाय

**सामग्री:**
* 2 कप पानी
* 1 कप दूध

**निर्देश:**
1. पानी को 3 मिनट तक उबालें।
2. चाय पत्ती और दूध डालें।
3. छानकर गरम परोसें।
"""


@pytest.fixture
def tomato_content():
    return TOMATO_SOUP


@pytest.fixture
def chai_content():
    return MASALA_CHAI


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def tomato_doc():
    return RecipeDocument(id="tomato-1", title="Tomato Soup", raw_content=TOMATO_SOUP)


@pytest.fixture
def chai_doc():
    return RecipeDocument(id="chai-1", title="Masala  Chai", raw_content=MASALA_CHAI)


@pytest.fixture
def numbered_recipe():
    """Factory for an English recipe with `count` untimed steps."""

    def make(count: int, title: str = "Long Dal") -> RecipeDocument:
        lines = [f"**Name:** {title}", "**Instructions:**"]
        lines += [f"{n}. Stir the pot, step {n}" for n in range(1, count + 1)]
        return RecipeDocument(title=title, raw_content="\n".join(lines))

    return make


@pytest.fixture
def flaky_store():
    """Factory for a MemoryStore whose next write to `slot` fails once armed."""

    class FlakyStore(MemoryStore):
        def __init__(self, slot):
            super().__init__()
            self.slot = slot
            self.armed = False

        def set(self, key, record):
            if self.armed and key == self.slot:
                self.armed = False
                raise OSError("disk full")
            super().set(key, record)

    return FlakyStore


class FakeHistoryClient:
    """Records what would have been sent to the history service."""

    def __init__(self):
        self.starts = []
        self.completions = []
        self.restarts = []
        self.gate = None

    def record_start(self, document, language):
        self.starts.append((document.id, LanguageCode(language)))
        return True

    def record_completion(self, event):
        if self.gate is not None:
            self.gate.wait(timeout=5)
        self.completions.append(event)
        return True

    def record_restart(self, recipe_id):
        self.restarts.append(recipe_id)
        return True


@pytest.fixture
def history_client():
    return FakeHistoryClient()
