"""
Store persona shared by every generated reply.

Wording comes from configuration so another shop can reuse the prompts.
"""

from phonebot.config import settings

_biz = settings.business

STORE_PERSONA = f"Bạn là chatbot của một {_biz.store_name}."

ANSWER_STYLE = "Hãy trả lời tự nhiên"

STOCK_POLICY = "tất cả sản phẩm đều chính hãng, mới 100% và còn nguyên bảo hành"
