from chatml_stream.providers import create_provider
from chatml_stream.providers.hf_client import HuggingFaceStreamClient
from chatml_stream.providers.registry import GenerationParams, InferenceConfig


class SettingsStub:
    hf_model_id = "org/model"
    hf_endpoint_template = "http://localhost:8080/models/{model_id}/stream"
    hf_token_env = "MY_TOKEN"
    hf_token_prefix = "hf_"
    request_timeout = 5.0
    loading_marker = "currently loading"
    max_new_tokens = 64
    temperature = 0.1
    top_p = 0.5
    repetition_penalty = 1.0
    system_prompt_name = "syko"


def test_config_from_settings():
    cfg = InferenceConfig.from_settings(SettingsStub())
    assert cfg.model_id == "org/model"
    assert cfg.token_env == "MY_TOKEN"
    assert cfg.timeout == 5.0
    assert cfg.params == GenerationParams(max_new_tokens=64, temperature=0.1, top_p=0.5, repetition_penalty=1.0)
    assert "SykoLLM" in cfg.system_instruction
    assert cfg.stream_url() == "http://localhost:8080/models/org/model/stream"
    assert cfg.stream_url("a/b") == "http://localhost:8080/models/a/b/stream"


def test_generation_params_payload():
    assert GenerationParams().to_payload() == {
        "max_new_tokens": 512,
        "temperature": 0.6,
        "top_p": 0.9,
        "repetition_penalty": 1.2,
        "return_full_text": False,
    }


def test_create_provider_explicit_settings():
    provider = create_provider(SettingsStub(), token="hf_x")
    assert isinstance(provider, HuggingFaceStreamClient)
    assert provider.config.model_id == "org/model"
    assert provider.stream_url() == "http://localhost:8080/models/org/model/stream"


def test_create_provider_default(monkeypatch):
    monkeypatch.setattr("chatml_stream.providers.settings", SettingsStub())
    provider = create_provider()
    assert provider.config.token_env == "MY_TOKEN"
