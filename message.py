import json
import uuid


class TextMessage:
    text: str


class UserTextMessage(TextMessage):
    user_id: int

    def __init__(self, user_id: int, text: str) -> None:
        self.user_id = user_id
        self.text = text


class GroupTextMessage(TextMessage):
    group_id: int

    def __init__(self, group_id: int, text: str) -> None:
        self.group_id = group_id
        self.text = text


def build_action(message: TextMessage, echo: str) -> dict:
    """
    构造 OneBot 发送消息的动作
    """
    if isinstance(message, GroupTextMessage):
        action = "send_group_msg"
        target = {"group_id": message.group_id}
    elif isinstance(message, UserTextMessage):
        action = "send_private_msg"
        target = {"user_id": message.user_id}
    else:
        raise TypeError(f"无法发送的消息类型: {type(message).__name__}")

    return {
        "action": action,
        "params": {
            **target,
            "message": {
                "type": "text",
                "data": {
                    "text": message.text
                }
            }
        },
        "echo": echo
    }


async def send_message(websocket, message: TextMessage) -> str:
    echo = str(uuid.uuid4())
    await websocket.send(json.dumps(build_action(message, echo), ensure_ascii=False))
    return echo
