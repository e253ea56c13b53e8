import logging
from typing import Optional

from calculator import CalculationError, describe_error, evaluate


def format_result(value: float) -> str:
    """
    按 6 位有效数字输出，例如 0.333333、512、inf、nan
    """
    return f"{value:g}"


def answer(line: str) -> Optional[str]:
    """
    计算一行输入，返回要输出的文本；空行返回 None
    """
    if len(line) == 0:
        return None
    try:
        return format_result(evaluate(line))
    except CalculationError as e:
        return describe_error(e.error)


def run_repl(prompt: str = ">> ") -> None:
    """
    交互式循环：读入一行、计算并输出，遇到输入结束或 Ctrl-C 时退出
    """
    logging.info("进入交互模式")
    while True:
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            break

        output = answer(line)
        if output is not None:
            print(output)
    logging.info("退出交互模式")
