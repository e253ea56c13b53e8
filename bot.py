import json
import logging
from typing import List, Optional, Sequence

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from calculator import CalculationError, describe_error, evaluate
from message import TextMessage, send_message, GroupTextMessage, UserTextMessage
from repl import format_result

HELP_TEXT = "支持的指令: \n.help\n.info\n.calc 表达式\n.c 表达式"
INFO_TEXT = "四则运算bot，支持 + - * / ^ 和括号"


def execute_command(command: str, sender_id: int, sender_nickname: str,
                    group_id: Optional[int] = None) -> TextMessage:
    # 记录执行的命令
    logging.info(f"用户 {sender_nickname}({sender_id}) 执行命令: {command}")

    def to_text_message(message: str) -> TextMessage:
        if group_id is not None:
            return GroupTextMessage(group_id, message)
        else:
            return UserTextMessage(sender_id, message)

    lower_command = command.lower()
    if lower_command == "info":
        return to_text_message(INFO_TEXT)

    if lower_command == "help":
        return to_text_message(HELP_TEXT)

    name, _, expression = command.partition(" ")
    if name.lower() in ("calc", "c"):
        try:
            result = evaluate(expression)
            return to_text_message(f"{sender_nickname} 计算得到 {format_result(result)}")
        except CalculationError as e:
            return to_text_message(describe_error(e.error))

    # 未知指令
    return to_text_message(f"未知指令: {command}\n支持的指令请执行.help")


def extract_commands(text: str, prefixes: Sequence[str]) -> List[str]:
    """
    从文本中取出指令，每行一条，需以前缀开头
    """
    commands: List[str] = []
    for line in text.strip().split('\n'):
        line = line.strip()
        for prefix in prefixes:
            if prefix and line.startswith(prefix):
                # 去掉前缀
                command = line[len(prefix):].strip()
                if len(command) > 0:
                    commands.append(command)
                break
    return commands


def handle_event(event: dict, prefixes: Sequence[str]) -> List[TextMessage]:
    """
    处理一条上报事件，返回需要回复的消息
    """
    if "self_id" not in event:
        return []
    self_id: int = event["self_id"]
    group_id: Optional[int] = event.get("group_id")

    if "sender" not in event or "message" not in event:
        return []
    sender = event["sender"]
    if "user_id" not in sender or "nickname" not in sender:
        return []

    sender_id: int = sender["user_id"]
    if self_id == sender_id:
        return []

    sender_nickname = sender["nickname"]
    segments = event["message"]
    if not isinstance(segments, list):
        return []

    has_at = False
    at_self = False
    results: List[TextMessage] = []

    for segment in segments:
        if not isinstance(segment, dict):
            continue
        segment_type = segment.get("type")
        data = segment.get("data")
        if not isinstance(data, dict):
            continue

        # 处理文本消息
        if segment_type == "text" and "text" in data:
            for command in extract_commands(data["text"], prefixes):
                results.append(execute_command(command, sender_id, sender_nickname, group_id))

        elif segment_type == "at":
            has_at = True
            at_qq = str(data.get("qq"))
            if at_qq == str(self_id) or at_qq == "all":
                at_self = True

    # 有 @ 时只回复 @ 自己的消息
    if has_at and not at_self:
        return []
    return results


async def receive_messages(ws, prefixes: Sequence[str]) -> None:
    while True:
        try:
            raw = await ws.recv()
            event = json.loads(raw)
            if not isinstance(event, dict):
                continue
            logging.debug(f"收到消息: {event}")

            for result in handle_event(event, prefixes):
                await send_message(ws, result)

        except ConnectionClosed:
            logging.info("WebSocket 连接已关闭")
            break
        except json.JSONDecodeError:
            logging.error("接收到无效的 JSON 数据")
        except Exception as e:
            logging.error(f"处理消息时发生未知错误: {e}")


async def run_bot(uri: str, prefixes: Sequence[str]) -> None:
    try:
        async with websockets.connect(uri) as websocket:
            logging.info(f"已连接到WebSocket服务器: {uri}")
            await receive_messages(websocket, prefixes)
    except (OSError, WebSocketException) as e:
        logging.error(f"WebSocket连接失败: {e}")
