"""
命令行提交生成任务并等待结果

Usage:
  PYTHONPATH=src python scripts/generate_cli.py ai-image-generator \
      --param prompt="a panda eating bamboo" --param ratio=1:1 --param count=1 --param format=webp
"""
from __future__ import annotations

import argparse
import json
import sys
import threading

from gen_studio.client import GenerationClient
from gen_studio.core import GenerationError, get_settings, setup_logging


def _parse_param(raw: str) -> tuple[str, object]:
    """key=value，value 能按 JSON 解析就用解析结果（数字、布尔）"""
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"参数格式应为 key=value: {raw}")
    key, value = raw.split("=", 1)
    try:
        return key, json.loads(value)
    except ValueError:
        return key, value


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Submit a generation task and wait for it.")
    parser.add_argument("tool", help="tool key, e.g. ai-image-generator")
    parser.add_argument("--param", action="append", type=_parse_param, default=[])
    parser.add_argument("--base-url", default=f"http://127.0.0.1:{settings.api_port}")
    parser.add_argument("--token", default=None, help="access token of the logged-in user")
    parser.add_argument("--interval", type=float, default=settings.poll_interval)
    parser.add_argument("--max-attempts", type=int, default=settings.poll_max_attempts)
    args = parser.parse_args()

    setup_logging(settings.log_level, settings.log_file or None)

    client = GenerationClient(args.base_url, token=args.token)
    cancel_event = threading.Event()

    try:
        result = client.generate_and_wait(
            args.tool,
            dict(args.param),
            interval=args.interval,
            max_attempts=args.max_attempts,
            cancel_event=cancel_event,
            on_status_update=lambda data: print(f"status: {data.get('status')}"),
        )
    except KeyboardInterrupt:
        cancel_event.set()
        print("已停止轮询（第三方任务仍在运行）")
        return 130
    except GenerationError as e:
        print(f"[{e.kind.value}] {e.message}", file=sys.stderr)
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0 if result.get("status") == "succeed" else 1


if __name__ == "__main__":
    sys.exit(main())
