"""
AI 文本服务 - 支持 OpenAI 兼容 API
仅用于摘要类辅助功能：运营简报、备注润色、日报点评
调用失败不抛出异常，记录日志后返回固定提示语
"""
from typing import Optional, Dict
import logging
from openai import OpenAI
from frontdesk.config import settings

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API Key is missing. Check configuration."
FAST_EMPTY_MESSAGE = "AI services temporarily unavailable."
FAST_ERROR_MESSAGE = "Failed to retrieve AI insights."
ANALYTICAL_EMPTY_MESSAGE = "Analysis failed."
ANALYTICAL_ERROR_MESSAGE = "Complexity error in AI analysis."

DEFAULT_PERSONA = (
    f"You are an expert hospitality assistant for {settings.HOTEL_NAME}. "
    "Be concise, professional, and luxury-oriented."
)

FAST_TEMPERATURE = 0.7
ANALYTICAL_TEMPERATURE = 0.4


class AIService:
    """AI 文本补全服务"""

    def __init__(self):
        """初始化客户端，未配置 API Key 时不创建"""
        self.api_key = settings.OPENAI_API_KEY
        self.enabled = settings.ENABLE_LLM and bool(self.api_key)

        if self.enabled:
            self.client = OpenAI(
                api_key=self.api_key,
                base_url=settings.OPENAI_BASE_URL,
                timeout=settings.LLM_TIMEOUT
            )
        else:
            self.client = None

    def is_enabled(self) -> bool:
        return self.enabled

    def _complete(self, model: str, prompt: str, system_instruction: str,
                  temperature: float) -> Optional[str]:
        response = self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt}
            ],
            temperature=temperature
        )
        if not response.choices:
            return None
        return response.choices[0].message.content

    def fast_query(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        """快速任务（轻量模型）"""
        if not self.enabled:
            return MISSING_KEY_MESSAGE
        try:
            text = self._complete(
                settings.LLM_FAST_MODEL, prompt,
                system_instruction or DEFAULT_PERSONA, FAST_TEMPERATURE
            )
        except Exception as e:
            logger.error(f"AI fast query failed: {e}")
            return FAST_ERROR_MESSAGE
        return text or FAST_EMPTY_MESSAGE

    def analytical_query(self, prompt: str, system_instruction: str) -> str:
        """分析类任务（分析模型）"""
        if not self.enabled:
            return MISSING_KEY_MESSAGE
        try:
            text = self._complete(
                settings.LLM_ANALYTICAL_MODEL, prompt,
                system_instruction, ANALYTICAL_TEMPERATURE
            )
        except Exception as e:
            logger.error(f"AI analytical query failed: {e}")
            return ANALYTICAL_ERROR_MESSAGE
        return text or ANALYTICAL_EMPTY_MESSAGE

    # ============== 业务用法 ==============

    def operations_briefing(self, stats: Dict[str, int]) -> str:
        """根据房态统计生成三条运营建议"""
        prompt = (
            "Current Hotel Status:\n"
            f"- Available Rooms: {stats.get('available', 0)}\n"
            f"- Occupied Rooms: {stats.get('occupied', 0)}\n"
            f"- Dirty Rooms (Pending Housekeeping): {stats.get('dirty', 0)}\n"
            f"- Reserved (Awaiting Arrival): {stats.get('reserved', 0)}\n\n"
            "Provide 3 short, actionable bullet points for the front desk manager "
            "to optimize operations for today.\n"
            "Focus on housekeeping priority, check-in preparation, and potential upsell opportunities.\n"
            "Tone: Professional, high-end hotel management style."
        )
        return self.fast_query(prompt, f"You are the AI Operations Manager for {settings.HOTEL_NAME}.")

    def refine_notes(self, special_requests: Optional[str], notes: Optional[str]) -> str:
        """润色客人备注，两项都为空时报错"""
        if not (special_requests or "").strip() and not (notes or "").strip():
            raise ValueError("特殊要求和备注不能同时为空")

        content = f"Requests: {special_requests or ''}\nNotes: {notes or ''}"
        prompt = (
            "Professionalize and summarize these internal guest notes "
            f"for a 5-star hotel front desk log:\n\"{content}\""
        )
        return self.fast_query(prompt, "You are a hospitality documentation expert.")

    def summarize_day(self, business_date: str, stats: Dict[str, str]) -> str:
        """日报点评"""
        prompt = (
            f"Daily fiscal report for {business_date}:\n"
            f"- Total Bill: {stats.get('sum_bill')}\n"
            f"- Collected: {stats.get('sum_amount')}\n"
            f"- Outstanding Due: {stats.get('sum_due')}\n"
            f"- Token Adjustment: {stats.get('token_adjustment')}\n"
            f"- Closing Balance: {stats.get('closing_balance')}\n\n"
            "Summarize the day's financial position in 3 sentences and flag any collection risk."
        )
        return self.analytical_query(
            prompt, f"You are the night auditor for {settings.HOTEL_NAME}. Currency: {settings.CURRENCY_LABEL}"
        )


_ai_service: Optional[AIService] = None


def get_ai_service() -> AIService:
    """获取 AI 服务单例（依赖注入用）"""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
