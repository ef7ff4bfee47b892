import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from caterbot_chat.app_config import load_json_config, parse_app_config, resolve_runtime_env
from caterbot_chat.bootstrap import bootstrap_runtime
from caterbot_chat.console import ChatConsole


async def main() -> None:
    load_dotenv()

    app = parse_app_config(load_json_config())
    try:
        runtime = await bootstrap_runtime(app, resolve_runtime_env())
    except ValueError as ex:
        logger.error(str(ex))
        sys.exit(1)

    console = ChatConsole(runtime)

    print("caterbot-chat (type 'exit' to quit, '/help' for commands)")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()
    console.print_session_header()
    print()

    try:
        while True:
            try:
                user_input = input("you> ")
            except (EOFError, KeyboardInterrupt):
                break

            trimmed = user_input.strip()
            if trimmed in ("exit", "quit"):
                break
            if not trimmed:
                continue

            try:
                await console.handle(trimmed)
                print()
            except Exception as ex:
                logger.error(f"Unhandled error: {ex}")
    finally:
        await runtime.client.aclose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
