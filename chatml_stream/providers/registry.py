"""推理端点与生成参数配置。

本模块把进程级的 Settings 转成不可变的 InferenceConfig，
客户端只依赖 InferenceConfig，测试时可以直接构造一个替身，
无需修改全局配置。"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from chatml_stream.prompts import load_system_prompt


# 部分模型会把 ChatML 结束符当普通文本吐出来，需要从片段里去掉
END_OF_TURN_MARKER = "<|im_end|>"
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class GenerationParams:
    """TGI 生成参数，对应请求体中的 parameters 字段。"""

    max_new_tokens: int = 512
    temperature: float = 0.6
    top_p: float = 0.9
    repetition_penalty: float = 1.2
    return_full_text: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "max_new_tokens": self.max_new_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "repetition_penalty": self.repetition_penalty,
            "return_full_text": self.return_full_text,
        }


@dataclass(frozen=True)
class InferenceConfig:
    """单个流式推理客户端的完整配置。

    - model_id: 调用时 model_id 为空时使用的默认模型。
    - endpoint_template: 含 {model_id} 占位符的端点 URL。
    - system_instruction: 写进 ChatML system 帧的系统提示词。
    - token_env / token_prefix: 访问令牌所在的环境变量及其必须的前缀。
    - timeout: 等待响应头的秒数。
    """

    model_id: str
    system_instruction: str
    endpoint_template: str = "https://api-inference.huggingface.co/models/{model_id}/stream"
    token_env: str = "HF_API_TOKEN"
    token_prefix: str = "hf_"
    timeout: float = 45.0
    loading_marker: str = "currently loading"
    end_of_turn_marker: str = END_OF_TURN_MARKER
    done_sentinel: str = DONE_SENTINEL
    params: GenerationParams = field(default_factory=GenerationParams)

    def stream_url(self, model_id: Optional[str] = None) -> str:
        return self.endpoint_template.format(model_id=model_id or self.model_id)

    @classmethod
    def from_settings(cls, cfg) -> "InferenceConfig":
        """根据 Settings（或任何同名属性的对象）构造配置。"""

        return cls(
            model_id=cfg.hf_model_id,
            system_instruction=load_system_prompt(cfg.system_prompt_name),
            endpoint_template=cfg.hf_endpoint_template,
            token_env=cfg.hf_token_env,
            token_prefix=cfg.hf_token_prefix,
            timeout=cfg.request_timeout,
            loading_marker=cfg.loading_marker,
            params=GenerationParams(
                max_new_tokens=cfg.max_new_tokens,
                temperature=cfg.temperature,
                top_p=cfg.top_p,
                repetition_penalty=cfg.repetition_penalty,
            ),
        )
