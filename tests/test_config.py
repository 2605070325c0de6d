import importlib.util
import os
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

_MISSING_PYDANTIC_SETTINGS = importlib.util.find_spec("pydantic_settings") is None

if not _MISSING_PYDANTIC_SETTINGS:
    from agro_helper.infra.config import AppConfig, MissingApiKeyError, require_api_key

_ENV_KEYS = (
    "GEMINI_API_KEY",
    "API_KEY",
    "LLM_PROVIDER",
    "OPENAI_API_KEY",
    "CORS_ORIGINS",
    "BACKEND_URL",
)


@unittest.skipUnless(not _MISSING_PYDANTIC_SETTINGS, "pydantic_settings not installed")
class AppConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._env_backup = {key: os.environ.get(key) for key in _ENV_KEYS}
        for key in _ENV_KEYS:
            os.environ.pop(key, None)

    def tearDown(self) -> None:
        for key, value in self._env_backup.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value

    def test_defaults(self) -> None:
        cfg = AppConfig(_env_file=None)
        self.assertEqual(cfg.llm_provider, "gemini")
        self.assertEqual(cfg.model_name, "gemini-2.5-flash")
        self.assertEqual(cfg.port, 3001)
        self.assertEqual(cfg.cors_origin_list, ["*"])

    def test_api_key_alias(self) -> None:
        os.environ["API_KEY"] = "legacy-key"
        self.assertEqual(require_api_key(AppConfig(_env_file=None)), "legacy-key")

    def test_missing_key_raises(self) -> None:
        os.environ["GEMINI_API_KEY"] = "   "
        with self.assertRaises(MissingApiKeyError) as ctx:
            require_api_key(AppConfig(_env_file=None))
        self.assertIn("GEMINI_API_KEY", str(ctx.exception))

    def test_openai_provider_uses_its_own_key(self) -> None:
        os.environ["LLM_PROVIDER"] = "OpenAI"
        os.environ["GEMINI_API_KEY"] = "gemini-key"
        cfg = AppConfig(_env_file=None)
        self.assertEqual(cfg.llm_provider, "openai")
        with self.assertRaises(MissingApiKeyError):
            require_api_key(cfg)
        os.environ["OPENAI_API_KEY"] = "openai-key"
        self.assertEqual(require_api_key(AppConfig(_env_file=None)), "openai-key")

    def test_origin_list_and_backend_url(self) -> None:
        os.environ["CORS_ORIGINS"] = "http://a.test, http://b.test ,"
        os.environ["BACKEND_URL"] = "http://localhost:3001/"
        cfg = AppConfig(_env_file=None)
        self.assertEqual(cfg.cors_origin_list, ["http://a.test", "http://b.test"])
        self.assertEqual(cfg.backend_url, "http://localhost:3001")


if __name__ == "__main__":
    unittest.main()
