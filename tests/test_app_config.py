import asyncio
import os
import unittest
from unittest.mock import patch

from caterbot_chat.app_config import RuntimeEnv, parse_app_config, resolve_runtime_env
from caterbot_chat.bootstrap import bootstrap_runtime
from caterbot_chat.remote import create_remote_client


class AppConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        app = parse_app_config({})

        self.assertIsNone(app.site_id)
        self.assertEqual("demo-user", app.user_id)
        self.assertEqual("master-chat", app.chat_function)
        self.assertEqual("equipment-context", app.equipment_function)
        self.assertIsNone(app.equipment_qr_code)
        self.assertEqual(30.0, app.request_timeout_seconds)
        self.assertEqual(3, app.max_attempts)
        self.assertEqual(90.0, app.reply_timeout_seconds)
        self.assertEqual("INFO", app.log_level)
        self.assertIsNone(app.log_consumers)

    def test_overrides(self) -> None:
        app = parse_app_config(
            {
                "SiteId": " TOCA-TEST-001 ",
                "UserId": "",
                "EquipmentQrCode": "QR-17",
                "RequestTimeoutSeconds": "12.5",
                "MaxAttempts": 5,
                "ReplyTimeoutSeconds": 0,
                "LogLevel": "DEBUG",
                "LogConsumers": [{"type": "console"}],
            }
        )

        self.assertEqual("TOCA-TEST-001", app.site_id)
        self.assertEqual("demo-user", app.user_id)
        self.assertEqual("QR-17", app.equipment_qr_code)
        self.assertEqual(12.5, app.request_timeout_seconds)
        self.assertEqual(5, app.max_attempts)
        self.assertIsNone(app.reply_timeout_seconds)
        self.assertEqual([{"type": "console"}], app.log_consumers)

    def test_runtime_env_reads_environment(self) -> None:
        with patch.dict(os.environ, {"SUPABASE_URL": " https://x.example.co ", "SUPABASE_ANON_KEY": "k"}):
            env = resolve_runtime_env()

        self.assertEqual(RuntimeEnv(functions_url="https://x.example.co", functions_key="k"), env)

    def test_remote_client_requires_url_and_key(self) -> None:
        app = parse_app_config({})

        with self.assertRaises(ValueError):
            create_remote_client(app, RuntimeEnv(functions_url="", functions_key="k"))
        with self.assertRaises(ValueError):
            create_remote_client(app, RuntimeEnv(functions_url="https://x.example.co", functions_key=""))


class BootstrapTests(unittest.TestCase):
    def test_bootstrap_builds_runtime_without_equipment(self) -> None:
        app = parse_app_config({"SiteId": "site-1", "LogConsumers": []})
        env = RuntimeEnv(functions_url="https://x.example.co", functions_key="k")

        async def scenario():
            runtime = await bootstrap_runtime(app, env)
            try:
                session = runtime.new_session({"name": "Fryer"})
                return runtime, session
            finally:
                await runtime.client.aclose()

        runtime, session = asyncio.run(scenario())

        self.assertIsNone(runtime.equipment)
        self.assertEqual([], runtime.log_descriptions)
        self.assertEqual(90.0, runtime.reply_timeout_seconds)
        self.assertIn("Fryer", session.messages[0].text)
        self.assertTrue(runtime.connectivity())


if __name__ == "__main__":
    unittest.main()
