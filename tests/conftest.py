"""Shared test fixtures and helpers."""

from typing import Any, Optional

import pytest

from phonebot.conversation.composer import ResponseComposer
from phonebot.conversation.consultation import ConsultationRecord
from phonebot.conversation.context import ConversationContext
from phonebot.conversation.controller import DialogueController
from phonebot.conversation.intent_resolver import (
    BRAND_ENTITY,
    COLOR_ENTITY,
    FEATURE_ENTITY,
    PRICE_RANGE_ENTITY,
    PRODUCT_NAME_ENTITY,
    IntentResolver,
)
from phonebot.conversation.session_store import SessionStore
from phonebot.conversation.state_machine import DialogueStateMachine
from phonebot.tools.catalog import InMemoryCatalog

INSTALLMENT_OFFER = "Trả góp 0% trong 6 tháng"
GENERATED_TEXT = "Đây là câu trả lời của chatbot."


def make_payload(
    intent: Optional[str] = None,
    product_names: tuple[str, ...] = (),
    brand: Optional[str] = None,
    price_range: Optional[str] = None,
    color: Optional[str] = None,
    feature: Optional[str] = None,
) -> dict[str, Any]:
    """Helper to create a Wit.ai /message payload."""
    entities: dict[str, list[dict[str, Any]]] = {}
    if product_names:
        entities[PRODUCT_NAME_ENTITY] = [{"value": name} for name in product_names]
    for key, value in (
        (BRAND_ENTITY, brand),
        (PRICE_RANGE_ENTITY, price_range),
        (COLOR_ENTITY, color),
        (FEATURE_ENTITY, feature),
    ):
        if value:
            entities[key] = [{"value": value}]
    intents = [{"name": intent, "confidence": 0.98}] if intent else []
    return {"text": "", "intents": intents, "entities": entities, "traits": {}}


class FakeClassifier:
    """Scripted classifier keyed by the normalized message.

    Unknown messages get an empty (but available) payload; a script entry
    of None simulates an unreachable service.
    """

    def __init__(self, script: Optional[dict[str, Optional[dict[str, Any]]]] = None) -> None:
        self.script = dict(script or {})
        self.calls: list[str] = []
        self.closed = False

    async def classify(self, text: str) -> Optional[dict[str, Any]]:
        self.calls.append(text)
        if text in self.script:
            return self.script[text]
        return make_payload()

    async def aclose(self) -> None:
        self.closed = True


class RecordingGenerator:
    """Text generator that remembers every prompt it was given."""

    def __init__(self, text: str = GENERATED_TEXT, error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text

    @property
    def last_prompt(self) -> str:
        return self.prompts[-1]


class SpyCatalog(InMemoryCatalog):
    """In-memory catalog that records which lookups ran."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.calls: list[tuple[str, tuple]] = []

    async def find_by_price_range(self, min_price, max_price, name=None):
        self.calls.append(("find_by_price_range", (min_price, max_price)))
        return await super().find_by_price_range(min_price, max_price, name)

    async def find_by_brand(self, brand, feature=None, color=None):
        self.calls.append(("find_by_brand", (brand, feature, color)))
        return await super().find_by_brand(brand, feature, color)


@pytest.fixture
def state_machine():
    return DialogueStateMachine()


@pytest.fixture
def consultation_record():
    return ConsultationRecord()


@pytest.fixture
def context():
    return ConversationContext()


@pytest.fixture
def catalog():
    return SpyCatalog()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def generator():
    return RecordingGenerator()


@pytest.fixture
def store():
    return SessionStore(max_sessions=100, idle_ttl_sec=3600)


@pytest.fixture
def controller(classifier, catalog, generator, store):
    return DialogueController(
        resolver=IntentResolver(classifier),
        catalog=catalog,
        composer=ResponseComposer(generator, timeout_sec=1.0),
        store=store,
        image_base_url="/images",
        default_image="default.jpg",
        installment_offer=INSTALLMENT_OFFER,
    )
