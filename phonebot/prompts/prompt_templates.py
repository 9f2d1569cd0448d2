"""Prompt construction: structured facts in, one instruction string out."""

import json
from dataclasses import dataclass
from typing import Any, Optional

from phonebot.conversation.consultation import ConsultationSlot
from phonebot.conversation.price_parser import PriceRange
from phonebot.prompts.system_prompts import ANSWER_STYLE, STOCK_POLICY, STORE_PERSONA
from phonebot.schemas.product_schema import Product


@dataclass(frozen=True)
class PromptFacts:
    """Everything the generative model needs for one reply.

    Rendered as: persona, the user's message, an optional situation
    clause, the data inlined as JSON, then the task.
    """

    message: str
    task: str
    data: Optional[Any] = None
    situation: str = ""
    lead: str = "Người dùng hỏi"
    data_label: str = "Dựa trên dữ liệu từ cơ sở dữ liệu"

    def render(self) -> str:
        parts = [f'{STORE_PERSONA} {self.lead}: "{self.message}"{self.situation}.']
        if self.data is not None:
            payload = json.dumps(self.data, ensure_ascii=False, default=str)
            parts.append(f"{self.data_label}: {payload},")
            parts.append(f"{ANSWER_STYLE.lower()}, {self.task}.")
        else:
            parts.append(f"{ANSWER_STYLE}, {self.task}.")
        return " ".join(parts)


def _listing(products: list[Product]) -> list[dict[str, Any]]:
    return [p.summary_facts() for p in products]


# --- Failures and clarifications ---

def build_classifier_unavailable_prompt(message: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=", nhưng hệ thống không thể nhận diện ý định",
        task="xin lỗi và gợi ý người dùng thử lại hoặc cung cấp thêm thông tin",
    )


def build_processing_error_prompt(message: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        lead="Đã xảy ra lỗi khi xử lý câu hỏi",
        task="xin lỗi và gợi ý thử lại sau",
    )


def build_missing_product_prompt(message: str, example: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=", nhưng không chỉ rõ sản phẩm nào",
        task=f'yêu cầu người dùng chỉ rõ sản phẩm, ví dụ: "{example}"',
    )


def build_missing_brand_prompt(message: str, example: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=", nhưng không xác định được thương hiệu",
        task=f'yêu cầu người dùng chỉ rõ thương hiệu, ví dụ: "{example}"',
    )


def build_product_not_found_prompt(
    message: str, product_name: str, suggestion: str = "gợi ý hỏi về sản phẩm khác"
) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=f'. Không tìm thấy sản phẩm "{product_name}" trong cơ sở dữ liệu',
        task=f"thông báo không tìm thấy và {suggestion}",
    )


def build_similar_products_prompt(
    message: str, product_name: str, similar: list[Product]
) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=f'. Không tìm thấy sản phẩm "{product_name}"',
        data_label="nhưng có các sản phẩm tương tự",
        data=_listing(similar),
        task="thông báo không tìm thấy và liệt kê sản phẩm tương tự",
    )


# --- Product answers ---

def build_product_detail_prompt(message: str, product: Product) -> PromptFacts:
    return PromptFacts(
        message=message,
        data_label="Dựa trên thông tin sản phẩm từ cơ sở dữ liệu",
        data=product.detail_facts(),
        task="cung cấp đầy đủ thông tin và hỏi xem người dùng có muốn đặt mua không",
    )


def build_product_topic_prompt(message: str, facts: dict[str, Any], task: str) -> PromptFacts:
    """Single-topic answer (price, colors, warranty, promotions, installments)."""
    return PromptFacts(
        message=message,
        data_label="Dựa trên thông tin sản phẩm từ cơ sở dữ liệu",
        data=facts,
        task=task,
    )


def build_comparison_prompt(message: str, first: Product, second: Product) -> PromptFacts:
    return PromptFacts(
        message=message,
        data_label="Dựa trên thông tin từ cơ sở dữ liệu",
        data={"product1": first.comparison_facts(), "product2": second.comparison_facts()},
        task="so sánh hai sản phẩm và hỏi xem người dùng có muốn xem chi tiết không",
    )


def build_comparison_not_found_prompt(message: str, first: str, second: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=f'. Không tìm thấy một trong hai sản phẩm "{first}" hoặc "{second}" trong cơ sở dữ liệu',
        task="thông báo lỗi và gợi ý thử lại",
    )


def build_comparison_missing_prompt(message: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=", nhưng không cung cấp đủ tên hai sản phẩm để so sánh",
        task='yêu cầu người dùng chỉ rõ hai sản phẩm, ví dụ: "So sánh iPhone 14 và Galaxy S23"',
    )


# --- Listings ---

def build_brand_listing_prompt(
    message: str, brand: str, products: list[Product], color: Optional[str] = None
) -> PromptFacts:
    label = f"đây là các sản phẩm của {brand}" + (f" màu {color}" if color else "")
    return PromptFacts(
        message=message,
        data_label=f"Dựa trên dữ liệu từ cơ sở dữ liệu, {label}",
        data=_listing(products),
        task="liệt kê sản phẩm dưới dạng danh sách và hỏi xem người dùng có muốn chọn mẫu nào không",
    )


def build_brand_empty_prompt(message: str, brand: str, color: Optional[str] = None) -> PromptFacts:
    target = f"{brand} màu {color}" if color else brand
    suggestion = "gợi ý xem màu khác" if color else "gợi ý hỏi về thương hiệu khác"
    return PromptFacts(
        message=message,
        situation=f". Không tìm thấy sản phẩm nào của {target} trong cơ sở dữ liệu",
        task=f"thông báo không có sản phẩm và {suggestion}",
    )


def build_brand_color_missing_prompt(message: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=", nhưng không đủ thông tin về thương hiệu hoặc màu sắc",
        task='yêu cầu người dùng chỉ rõ thương hiệu và màu, ví dụ: "Có sản phẩm Samsung màu đen không?"',
    )


def build_price_unclear_prompt(message: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=". Không thể hiểu rõ khoảng giá từ câu hỏi",
        task=(
            "xin lỗi và gợi ý người dùng cung cấp thêm thông tin về ngân sách, "
            'ví dụ: "Có điện thoại nào dưới 10 triệu không?"'
        ),
    )


def build_price_invalid_prompt(message: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=". Khoảng giá không hợp lệ",
        task="thông báo lỗi và yêu cầu kiểm tra lại",
    )


def build_price_listing_prompt(
    message: str, price_range: PriceRange, products: list[Product]
) -> PromptFacts:
    return PromptFacts(
        message=message,
        data_label=(
            "Dựa trên dữ liệu từ cơ sở dữ liệu, đây là các sản phẩm trong khoảng giá "
            + price_range.describe()
        ),
        data=_listing(products),
        task="liệt kê sản phẩm và hỏi xem người dùng có muốn chọn mẫu nào không",
    )


def build_price_empty_prompt(message: str, price_range: PriceRange) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=f". Không tìm thấy sản phẩm nào trong khoảng giá {price_range.describe()}",
        task="thông báo không có sản phẩm và gợi ý xem các dòng khác",
    )


# --- Consultation ---

def build_consultation_opening_prompt(
    message: str, product: Product, first: ConsultationSlot
) -> PromptFacts:
    return PromptFacts(
        message=message,
        data_label="Dựa trên thông tin sản phẩm",
        data=product.detail_facts(),
        task=f"chào hỏi và hỏi người dùng về {first.display_name} (ví dụ: {first.examples})",
    )


def build_consultation_question_prompt(
    message: str, product: Product, answered: ConsultationSlot, upcoming: ConsultationSlot
) -> PromptFacts:
    return PromptFacts(
        message=message,
        lead=f"Người dùng trả lời {answered.display_name}",
        data_label="Dựa trên sản phẩm",
        data=product.detail_facts(),
        task=f"cảm ơn và hỏi về {upcoming.display_name} (ví dụ: {upcoming.examples})",
    )


def build_consultation_summary_prompt(
    message: str, product: Product, answers: dict[str, Optional[str]]
) -> PromptFacts:
    return PromptFacts(
        message=message,
        lead="Người dùng trả lời màu sắc",
        data_label="Dựa trên thông tin sản phẩm và thông tin tư vấn",
        data={"product": product.detail_facts(), "consultation": answers},
        task=(
            "tóm tắt nhu cầu của họ và gợi ý sản phẩm phù hợp, "
            "sau đó hỏi xem họ có muốn xem chi tiết không"
        ),
    )


# --- Other ---

def build_stock_status_prompt(message: str) -> PromptFacts:
    return PromptFacts(
        message=message,
        task=f"rằng {STOCK_POLICY}, sau đó hỏi xem người dùng có muốn xem chi tiết sản phẩm nào không",
    )


def build_open_question_prompt(message: str, context_summary: dict[str, Any]) -> PromptFacts:
    return PromptFacts(
        message=message,
        situation=". Không nhận diện được ý định cụ thể",
        data_label="Dựa trên ngữ cảnh",
        data=context_summary,
        task="trả lời phù hợp",
    )
