"""
Dialogue controller: one inbound message -> one Reply.

Each turn runs under the session's lock on a snapshot of the session's
context. The snapshot is committed back to the store only when the turn
produced a reply that keeps its changes, so failing turns and
clarification requests leave the session exactly as it was.

Flow per message:
    1. a pending brand listing may claim the message as a product choice
    2. the intent resolver classifies the message
    3. an open consultation may claim the message as its next answer
    4. otherwise the intent's handler from the dispatch table runs
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from phonebot.config import AppConfig
from phonebot.conversation.composer import ResponseComposer
from phonebot.conversation.consultation import (
    SLOT_DEFINITIONS,
    ConsultationOrderError,
    slot_for_state,
)
from phonebot.conversation.context import ConversationContext
from phonebot.conversation.intent_resolver import BRAND_ALIASES, IntentResolver
from phonebot.conversation.price_parser import parse_price_range
from phonebot.conversation.session_store import SessionStore
from phonebot.conversation.state_machine import TransitionTrigger
from phonebot.logging_context import get_session_logger, set_session_id
from phonebot.prompts import prompt_templates as prompts
from phonebot.prompts.prompt_templates import PromptFacts
from phonebot.schemas.chat_schema import Reply
from phonebot.schemas.intent_schema import IntentResult
from phonebot.schemas.product_schema import Product, ProductCard
from phonebot.tools.catalog import ProductCatalog
from phonebot.utils import normalize_message

logger = get_session_logger(__name__)

Handler = Callable[[ConversationContext, IntentResult, str], Awaitable[Reply]]

PRICE_SEARCH = "tim_kiem_theo_gia"
PRODUCT_INFO = "thong_tin_san_pham"
CONSULTATION = "tu_van_san_pham"
PROMOTIONS = "hoi_khuyen_mai"
WARRANTY = "hoi_bao_hanh"
BRAND_SEARCH = "tim_kiem_theo_thuong_hieu"
PRICE_QUESTION = "hoi_gia"
COLOR_QUESTION = "hoi_mau_sac"
INSTALLMENT = "hoi_tra_gop"
COMPARISON = "so_sanh_san_pham"
BRAND_COLOR_SEARCH = "tim_kiem_thuong_hieu_mau"
BRAND_AVAILABILITY = "hoi_mau_san_pham"
STOCK_STATUS = "hoi_tinh_trang_hang"

# Shorter messages are not used as a product-name search term.
MIN_NAME_QUERY_LENGTH = 3


class DialogueController:
    """Routes each message through the dialogue state machine and intent handlers."""

    def __init__(
        self,
        resolver: IntentResolver,
        catalog: ProductCatalog,
        composer: ResponseComposer,
        store: SessionStore,
        image_base_url: str = "/images",
        default_image: Optional[str] = None,
        installment_offer: str = "",
    ) -> None:
        self._resolver = resolver
        self._catalog = catalog
        self._composer = composer
        self._store = store
        self._image_base_url = image_base_url
        self._default_image = default_image
        self._installment_offer = installment_offer
        self._handlers: dict[str, Handler] = {
            PRICE_SEARCH: self._handle_price_search,
            PRODUCT_INFO: self._handle_product_info,
            CONSULTATION: self._handle_consultation,
            PROMOTIONS: self._handle_promotions,
            WARRANTY: self._handle_warranty,
            BRAND_SEARCH: self._handle_brand_search,
            PRICE_QUESTION: self._handle_price_question,
            COLOR_QUESTION: self._handle_color_question,
            INSTALLMENT: self._handle_installment,
            COMPARISON: self._handle_comparison,
            BRAND_COLOR_SEARCH: self._handle_brand_color_search,
            BRAND_AVAILABILITY: self._handle_brand_availability,
            STOCK_STATUS: self._handle_stock_status,
        }

    @property
    def handled_intents(self) -> list[str]:
        return list(self._handlers)

    @property
    def store(self) -> SessionStore:
        return self._store

    async def aclose(self) -> None:
        await self._resolver.aclose()

    # ------------------------------------------------------------------ #
    # Turn processing
    # ------------------------------------------------------------------ #

    async def handle_message(self, session_id: str, message: str) -> Reply:
        """Process one message for a session and return the reply."""
        set_session_id(session_id)
        text = normalize_message(message)
        logger.info("User: %s", text)

        async with self._store.lock(session_id):
            working = self._store.get_or_create(session_id).snapshot()
            try:
                reply = await self._process(working, text)
            except Exception:
                logger.exception("Unhandled error while processing message")
                apology = await self._composer.compose(prompts.build_processing_error_prompt(text))
                return Reply(text=apology, commit=False)
            if reply.commit:
                self._store.commit(session_id, working)

        logger.info("Bot: %s", reply.text)
        return reply

    async def _process(self, ctx: ConversationContext, text: str) -> Reply:
        if ctx.machine.is_awaiting_product_choice():
            if self._refers_to_listing(ctx, text):
                reply = await self._handle_product_choice(ctx, text)
                ctx.record_turn(None, {}, text, reply.text)
                return reply
            logger.debug("Message left the %s listing", ctx.last_brand)
            ctx.shown_products = []
            ctx.transition(TransitionTrigger.TOPIC_CHANGED)

        result = await self._resolver.resolve(text)
        if not result.available:
            return await self._clarify(prompts.build_classifier_unavailable_prompt(text))

        if ctx.machine.is_consulting():
            if result.intent == CONSULTATION or result.intent not in self._handlers:
                handler: Handler = self._handle_consultation
            else:
                ctx.consultation.reset()
                ctx.transition(TransitionTrigger.TOPIC_CHANGED)
                handler = self._select_handler(result)
        else:
            handler = self._select_handler(result)

        reply = await handler(ctx, result, text)
        if reply.commit:
            ctx.record_turn(result.intent, result.entities(), text, reply.text)
        return reply

    def _select_handler(self, result: IntentResult) -> Handler:
        if result.intent is None and result.brand:
            return self._handle_brand_search
        return self._handlers.get(result.intent or "", self._handle_open_question)

    # ------------------------------------------------------------------ #
    # Shared helpers
    # ------------------------------------------------------------------ #

    async def _reply(self, facts: PromptFacts, **fields) -> Reply:
        return Reply(text=await self._composer.compose(facts), **fields)

    async def _clarify(self, facts: PromptFacts) -> Reply:
        """Reply that leaves the session untouched."""
        return Reply(text=await self._composer.compose(facts), commit=False)

    def _image(self, product: Product) -> Optional[str]:
        return product.image_path(self._image_base_url, self._default_image)

    def _cards(self, products: list[Product]) -> list[ProductCard]:
        return [
            ProductCard.from_product(p, self._image_base_url, self._default_image)
            for p in products
        ]

    @staticmethod
    def _remember_product(ctx: ConversationContext, product: Product) -> None:
        ctx.last_product = product
        ctx.last_brand = product.brand

    async def _target_product(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> tuple[Optional[Product], Optional[str]]:
        """Resolve the product a message is about.

        Returns (product, requested_name). ``requested_name`` is set only
        when the message named a product explicitly, so a miss can be
        reported as "not found" instead of asking which product is meant.
        """
        if result.product_name:
            return await self._catalog.get_product(result.product_name), result.product_name
        product = None
        if len(text) >= MIN_NAME_QUERY_LENGTH:
            product = await self._catalog.get_product(text)
        if product is None:
            product = await self._catalog.find_product_in_text(text)
        return product or ctx.last_product, None

    @staticmethod
    def _refers_to_listing(ctx: ConversationContext, text: str) -> bool:
        """Whether a message follows up on the last brand listing."""
        brand = (ctx.last_brand or "").lower()
        if brand and brand in text:
            return True
        for alias, target in BRAND_ALIASES.items():
            if brand and target.lower() == brand and alias in text:
                return True
        for name in ctx.shown_products:
            lowered = name.lower()
            if lowered in text or (len(text) >= MIN_NAME_QUERY_LENGTH and text in lowered):
                return True
        return False

    # ------------------------------------------------------------------ #
    # Product choice after a brand listing
    # ------------------------------------------------------------------ #

    async def _handle_product_choice(self, ctx: ConversationContext, text: str) -> Reply:
        product = await self._catalog.get_product(text)
        if product is None:
            product = await self._catalog.find_product_in_text(text)
        ctx.shown_products = []

        if product is None:
            reply = await self._reply(
                prompts.build_product_not_found_prompt(text, text, "gợi ý người dùng thử lại")
            )
            ctx.transition(TransitionTrigger.PRODUCT_NOT_FOUND)
            return reply

        reply = await self._reply(
            prompts.build_product_detail_prompt(text, product),
            image_url=self._image(product),
            show_buttons=True,
        )
        ctx.transition(TransitionTrigger.PRODUCT_CHOSEN)
        self._remember_product(ctx, product)
        return reply

    # ------------------------------------------------------------------ #
    # Listings
    # ------------------------------------------------------------------ #

    async def _list_brand(
        self,
        ctx: ConversationContext,
        text: str,
        brand: Optional[str],
        example: str,
        highlight_first: bool = False,
    ) -> Reply:
        if not brand:
            return await self._clarify(prompts.build_missing_brand_prompt(text, example))

        products = await self._catalog.find_by_brand(brand)
        if not products:
            reply = await self._reply(prompts.build_brand_empty_prompt(text, brand))
            ctx.last_brand = None
            return reply

        cards = self._cards(products)
        reply = await self._reply(
            prompts.build_brand_listing_prompt(text, brand, products),
            products=cards,
            image_url=cards[0].image_url if highlight_first else None,
            show_buttons=highlight_first,
        )
        ctx.last_brand = brand
        ctx.last_product = None
        ctx.shown_products = [p.name for p in products]
        ctx.transition(TransitionTrigger.BRAND_LISTED)
        return reply

    async def _handle_brand_search(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        return await self._list_brand(
            ctx, text, result.brand or ctx.last_brand, "Có sản phẩm nào của Samsung không?"
        )

    async def _handle_brand_availability(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        return await self._list_brand(
            ctx, text, result.brand, "Shop có bán iPhone không?", highlight_first=True
        )

    async def _handle_brand_color_search(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        brand = result.brand or ctx.last_brand
        color = result.color
        if not brand or not color:
            return await self._clarify(prompts.build_brand_color_missing_prompt(text))

        products = await self._catalog.find_by_brand(brand, color=color)
        if not products:
            reply = await self._reply(prompts.build_brand_empty_prompt(text, brand, color))
            ctx.last_brand = None
            return reply

        reply = await self._reply(
            prompts.build_brand_listing_prompt(text, brand, products, color),
            products=self._cards(products),
        )
        ctx.last_brand = brand
        ctx.last_product = None
        return reply

    async def _handle_price_search(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        price_range = parse_price_range(text, result.price_range)
        if price_range is None:
            return await self._clarify(prompts.build_price_unclear_prompt(text))
        if not price_range.is_valid:
            logger.info("Rejected price range %s", price_range)
            return await self._clarify(prompts.build_price_invalid_prompt(text))

        products = await self._catalog.find_by_price_range(
            price_range.min_price, price_range.max_price
        )
        if not products:
            return await self._reply(prompts.build_price_empty_prompt(text, price_range))
        return await self._reply(
            prompts.build_price_listing_prompt(text, price_range, products),
            products=self._cards(products),
        )

    # ------------------------------------------------------------------ #
    # Single-product questions
    # ------------------------------------------------------------------ #

    async def _answer_about_product(
        self,
        ctx: ConversationContext,
        result: IntentResult,
        text: str,
        facts_for: Callable[[Product], dict],
        task: str,
        example: str,
    ) -> Reply:
        product, requested = await self._target_product(ctx, result, text)
        if product is None:
            if requested is None:
                return await self._clarify(prompts.build_missing_product_prompt(text, example))
            return await self._reply(prompts.build_product_not_found_prompt(text, requested))

        reply = await self._reply(
            prompts.build_product_topic_prompt(text, facts_for(product), task),
            image_url=self._image(product),
            show_buttons=True,
        )
        self._remember_product(ctx, product)
        return reply

    async def _handle_product_info(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        product, requested = await self._target_product(ctx, result, text)
        if product is None and requested is None:
            return await self._clarify(
                prompts.build_missing_product_prompt(text, "Thông tin iPhone 14")
            )
        if product is None:
            brand = result.brand or ctx.last_brand
            similar = await self._catalog.suggest_similar(brand, requested) if brand else []
            if similar:
                return await self._reply(
                    prompts.build_similar_products_prompt(text, requested, similar),
                    products=self._cards(similar),
                )
            return await self._reply(
                prompts.build_product_not_found_prompt(text, requested, "gợi ý tìm sản phẩm khác")
            )

        reply = await self._reply(
            prompts.build_product_detail_prompt(text, product),
            image_url=self._image(product),
            show_buttons=True,
        )
        self._remember_product(ctx, product)
        return reply

    async def _handle_promotions(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        return await self._answer_about_product(
            ctx, result, text,
            facts_for=lambda p: {
                "name": p.name,
                "promotion_names": "; ".join(p.promotions) or "Không có khuyến mãi",
            },
            task="trả lời về khuyến mãi và hỏi xem người dùng có muốn đặt mua không",
            example="iPhone 14 có khuyến mãi gì không?",
        )

    async def _handle_warranty(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        return await self._answer_about_product(
            ctx, result, text,
            facts_for=lambda p: {
                "name": p.name,
                "warranty_period": p.warranty_text or "Không có thông tin",
            },
            task="trả lời về bảo hành và hỏi xem người dùng có muốn biết thêm thông tin không",
            example="Bảo hành của Galaxy S23 bao lâu?",
        )

    async def _handle_price_question(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        return await self._answer_about_product(
            ctx, result, text,
            facts_for=lambda p: {"name": p.name, "price": p.formatted_price},
            task="trả lời về giá và hỏi xem người dùng có muốn biết thêm thông tin không",
            example="iPhone 14 giá bao nhiêu?",
        )

    async def _handle_color_question(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        return await self._answer_about_product(
            ctx, result, text,
            facts_for=lambda p: {"name": p.name, "colors": p.colors or "Không có thông tin"},
            task="trả lời về màu sắc và hỏi xem người dùng có muốn biết thêm thông tin không",
            example="iPhone 14 có màu gì?",
        )

    async def _handle_installment(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        return await self._answer_about_product(
            ctx, result, text,
            facts_for=lambda p: {
                "name": p.name,
                "price": p.formatted_price,
                "tra_gop": self._installment_offer,
            },
            task="trả lời về trả góp và hỏi xem người dùng có muốn biết thêm hoặc đặt mua không",
            example="iPhone 14 có trả góp không?",
        )

    async def _handle_comparison(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        if len(result.product_names) < 2:
            return await self._clarify(prompts.build_comparison_missing_prompt(text))

        first_name, second_name = result.product_names[0], result.product_names[1]
        pair = await self._catalog.compare_products(first_name, second_name)
        if pair is None:
            return await self._reply(
                prompts.build_comparison_not_found_prompt(text, first_name, second_name)
            )

        reply = await self._reply(prompts.build_comparison_prompt(text, *pair))
        ctx.last_product = None
        ctx.last_brand = None
        return reply

    # ------------------------------------------------------------------ #
    # Consultation
    # ------------------------------------------------------------------ #

    async def _handle_consultation(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        product, requested = await self._target_product(ctx, result, text)
        if product is None:
            if requested is None:
                return await self._clarify(
                    prompts.build_missing_product_prompt(text, "Tư vấn iPhone 14")
                )
            return await self._clarify(
                prompts.build_product_not_found_prompt(
                    text, requested, "gợi ý tư vấn sản phẩm khác"
                )
            )

        image = self._image(product)
        if not ctx.machine.is_consulting():
            ctx.consultation.reset()
            reply = await self._reply(
                prompts.build_consultation_opening_prompt(text, product, SLOT_DEFINITIONS[0]),
                image_url=image,
            )
            ctx.transition(TransitionTrigger.CONSULTATION_STARTED)
            self._remember_product(ctx, product)
            return reply

        awaiting = slot_for_state(ctx.state)
        answered = ctx.consultation.fill(text)
        if awaiting is None or awaiting.name != answered:
            raise ConsultationOrderError(
                f"State {ctx.state.value} does not match answered field '{answered}'"
            )

        if ctx.consultation.is_complete():
            reply = await self._reply(
                prompts.build_consultation_summary_prompt(
                    text, product, ctx.consultation.to_dict()
                ),
                image_url=image,
                show_buttons=True,
            )
            ctx.consultation.reset()
            ctx.transition(TransitionTrigger.CONSULTATION_COMPLETED)
        else:
            upcoming = ctx.consultation.next_empty_slot()
            reply = await self._reply(
                prompts.build_consultation_question_prompt(text, product, awaiting, upcoming),
                image_url=image,
            )
            ctx.transition(TransitionTrigger.ANSWER_RECORDED)
        self._remember_product(ctx, product)
        return reply

    # ------------------------------------------------------------------ #
    # Everything else
    # ------------------------------------------------------------------ #

    async def _handle_stock_status(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        return await self._reply(prompts.build_stock_status_prompt(text))

    async def _handle_open_question(
        self, ctx: ConversationContext, result: IntentResult, text: str
    ) -> Reply:
        reply = await self._reply(prompts.build_open_question_prompt(text, ctx.summary()))
        ctx.last_product = None
        ctx.last_brand = None
        return reply


def build_controller(config: AppConfig) -> DialogueController:
    """Wire the production controller from configuration."""
    from phonebot.tools.catalog import InMemoryCatalog
    from phonebot.tools.intent_classifier import WitIntentClassifier
    from phonebot.tools.sql_catalog import SqlProductCatalog
    from phonebot.tools.text_generator import GeminiTextGenerator

    if config.catalog.database_url:
        catalog: ProductCatalog = SqlProductCatalog.from_url(config.catalog.database_url)
    else:
        logger.warning("DATABASE_URL is not set; serving the built-in sample catalog")
        catalog = InMemoryCatalog()

    return DialogueController(
        resolver=IntentResolver(WitIntentClassifier(config.classifier)),
        catalog=catalog,
        composer=ResponseComposer(GeminiTextGenerator(config.model), config.model.timeout_sec),
        store=SessionStore(
            max_sessions=config.sessions.max_sessions,
            idle_ttl_sec=config.sessions.idle_ttl_sec,
        ),
        image_base_url=config.catalog.image_base_url,
        default_image=config.catalog.default_image,
        installment_offer=config.business.installment_offer,
    )
