"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。

注意：访问令牌本身不放在这里。客户端在每次调用时按 hf_token_env
指定的变量名从进程环境读取，这样测试和长期运行的进程都能随时替换 token。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHATML_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class PydanticSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 推理端点 ----
    hf_model_id: str = Field(
        default="syko818121/SykoLLM-V2.5-Thinking-Beta",
        description="默认模型 ID，调用时未指定 model_id 时使用",
    )
    hf_endpoint_template: str = Field(
        default="https://api-inference.huggingface.co/models/{model_id}/stream",
        description="流式推理端点，{model_id} 会被替换",
    )
    hf_token_env: str = Field(default="HF_API_TOKEN", description="存放访问令牌的环境变量名")
    hf_token_prefix: str = Field(default="hf_", description="合法令牌必须带的前缀")
    loading_marker: str = Field(
        default="currently loading",
        description="上游错误体中表示模型冷启动的标记",
    )
    request_timeout: float = Field(
        default=45.0,
        ge=0.01,
        description="等待响应头的超时时间（秒），不限制整个流的时长",
    )

    # ---- 生成参数 ----
    max_new_tokens: int = Field(default=512, ge=1, description="最大生成 token 数")
    temperature: float = Field(default=0.6, ge=0.0, description="采样温度")
    top_p: float = Field(default=0.9, gt=0.0, le=1.0, description="nucleus 采样阈值")
    repetition_penalty: float = Field(default=1.2, gt=0.0, description="重复惩罚")

    # ---- 提示词与日志 ----
    system_prompt_name: str = Field(default="syko", description="prompts 目录下的系统提示词名")
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(
        default="INFO",
        description="日志级别，DEBUG 时记录每一条被忽略的畸形流行",
    )
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("hf_endpoint_template")
    @classmethod
    def validate_endpoint_template(cls, v: str) -> str:
        if "{model_id}" not in v:
            raise ValueError("hf_endpoint_template must contain a {model_id} placeholder")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v!r}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = PydanticSettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = PydanticSettings
