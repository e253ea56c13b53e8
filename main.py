import argparse
import asyncio
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from typing import List, Optional

from bot import run_bot
from calculator import CalculationError, describe_error, evaluate
from repl import format_result, run_repl
from settings import DEFAULT_CONFIG_PATH, Settings, load_settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)

    # 按天轮转的日志处理器
    timed_handler = TimedRotatingFileHandler(
        filename=settings.log_file,
        when='midnight',
        interval=1,
        backupCount=settings.log_backup_count,
        encoding='utf-8'
    )
    timed_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(timed_handler)


def attach_expression(argv: List[str]) -> List[str]:
    """
    把 "-e -3+5" 合并为 "-e=-3+5"，否则以 '-' 开头的表达式会被当成选项
    """
    args = list(argv)
    for i, arg in enumerate(args[:-1]):
        if arg in ("-e", "--expression"):
            args[i:i + 2] = [f"{arg}={args[i + 1]}"]
            break
    return args


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="四则运算表达式计算器")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="JSON 配置文件路径")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--bot", action="store_true", help="以 WebSocket 机器人模式运行")
    mode.add_argument("-e", "--expression", help="计算单个表达式后退出")
    return parser.parse_args(attach_expression(sys.argv[1:] if argv is None else argv))


def run(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = load_settings(args.config)
    setup_logging(settings)

    if args.expression is not None:
        try:
            print(format_result(evaluate(args.expression)))
        except CalculationError as e:
            print(describe_error(e.error))
            return 1
        return 0

    if args.bot:
        asyncio.run(run_bot(settings.uri, settings.command_prefixes))
    else:
        run_repl(settings.prompt)
    return 0


if __name__ == "__main__":
    sys.exit(run())
