"""
Generation Client
向补全端点发送请求并返回原始文本
"""
from typing import Optional
import logging

from config import LLMSettings, get_llm_settings
from utils.exceptions import GenerationError

from .llm import BaseLLM, Message, get_llm


logger = logging.getLogger(__name__)


class GenerationClient:
    """
    生成客户端
    单次调用补全端点；空内容或调用失败抛出 GenerationError
    """

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        llm: Optional[BaseLLM] = None,
        provider: Optional[str] = None,
    ):
        self.settings = settings or get_llm_settings()
        self.provider = (provider or self.settings.provider).lower()
        self._llm = llm

    @property
    def required_credential(self) -> str:
        return f"{self.provider.upper()}_API_KEY"

    def is_configured(self) -> bool:
        """注入的 LLM 视为已配置，否则检查 API Key"""
        return self._llm is not None or bool(self.settings.api_key_for(self.provider))

    def _get_llm(self) -> BaseLLM:
        if self._llm is None:
            self._llm = get_llm(provider=self.provider, settings=self.settings)
        return self._llm

    async def complete(self, prompt_text: str, model_id: Optional[str] = None) -> str:
        """
        发送提示词并返回原始补全文本

        Args:
            prompt_text: 渲染好的提示词
            model_id: 模型名称 (不传使用默认)

        Returns:
            模型输出文本

        Raises:
            GenerationError: 调用失败或返回空内容
        """
        llm = self._get_llm()
        model = model_id or llm.model
        logger.info(f"[{llm.provider}] Generating with {model} ({len(prompt_text)} chars prompt)")

        try:
            response = await llm.acomplete([Message.user(prompt_text)], model=model)
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(
                f"Generation request failed: {exc}",
                provider=llm.provider,
                model=model,
            ) from exc

        content = response.content or ""
        if not content.strip():
            raise GenerationError("No content received from generation endpoint", provider=llm.provider, model=model)

        logger.info(f"[{llm.provider}] Received {len(content)} chars (finish_reason={response.finish_reason})")
        return content

    async def aclose(self) -> None:
        if self._llm is not None:
            await self._llm.aclose()
