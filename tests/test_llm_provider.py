"""Provider factory tests.

Environment-driven selection is checked with a patched environment so no
real credentials or network access are needed.
"""

import os
import unittest
from unittest import mock

from storyforge.app.config import LLMConfig
from storyforge.infrastructure.llm.openrouter_provider import OpenRouterProvider
from storyforge.infrastructure.llm.provider_factory import ProviderFactory, ProviderType


class ProviderFactoryTest(unittest.IsolatedAsyncioTestCase):
    async def test_creates_openrouter_provider(self) -> None:
        provider = ProviderFactory.create("openrouter", api_key="k", default_model="a/b")

        self.assertIsInstance(provider, OpenRouterProvider)
        self.assertEqual(provider.provider_name, "openrouter")
        self.assertEqual(provider.base_url, OpenRouterProvider.DEFAULT_BASE_URL)
        self.assertEqual(provider.default_model, "a/b")
        await provider.close()

    async def test_local_servers_need_no_key(self) -> None:
        provider = ProviderFactory.create("lm-studio", default_model="local")

        self.assertEqual(provider.base_url, "http://localhost:1234/v1")
        self.assertEqual(provider.api_key, "not-needed")
        await provider.close()

    def test_unknown_provider_raises(self) -> None:
        with self.assertRaises(ValueError):
            ProviderFactory.create("carrier-pigeon", api_key="k")

    def test_missing_openrouter_key_raises(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                ProviderFactory.create(ProviderType.OPENROUTER)

    def test_default_model_env_precedence(self) -> None:
        env = {"OPENROUTER_MODEL": "primary/model", "OPENROUTER_DEFAULT_MODEL": "fallback/model"}
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertEqual(ProviderFactory.get_default_model("openrouter"), "primary/model")
        with mock.patch.dict(os.environ, {"OPENROUTER_DEFAULT_MODEL": "fallback/model"}, clear=True):
            self.assertEqual(ProviderFactory.get_default_model("openrouter"), "fallback/model")

    async def test_from_config_falls_back_to_environment(self) -> None:
        config = LLMConfig(provider="openrouter", model="cfg/model", timeout=5.0, max_retries=1)
        env = {"OPENROUTER_API_KEY": "env-key", "OPENROUTER_BASE_URL": "https://alt.test/v1"}
        with mock.patch.dict(os.environ, env, clear=True):
            provider = ProviderFactory.from_config(config)

        self.assertEqual(provider.api_key, "env-key")
        self.assertEqual(provider.base_url, "https://alt.test/v1")
        self.assertEqual(provider.default_model, "cfg/model")
        self.assertEqual(provider.timeout, 5.0)
        self.assertEqual(provider.retry.max_retries, 1)
        await provider.close()

    async def test_create_from_env(self) -> None:
        env = {
            "DEFAULT_PROVIDER": "LM-Proxy",
            "LM_PROXY_BASE_URL": "http://proxy.local/v1",
            "LM_PROXY_MODEL": "proxy/model",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            provider, model = ProviderFactory.create_from_env()

        self.assertEqual(model, "proxy/model")
        self.assertEqual(provider.base_url, "http://proxy.local/v1")
        self.assertEqual(provider.default_model, "proxy/model")
        await provider.close()


if __name__ == "__main__":
    unittest.main()
