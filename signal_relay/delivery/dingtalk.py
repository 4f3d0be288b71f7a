"""DingTalk robot delivery with signed webhooks."""

import base64
import hashlib
import hmac
import time
from typing import Any, Dict, Optional
from urllib.parse import quote_plus

import httpx

from signal_relay.core.errors import DeliveryError
from signal_relay.core.logging import delivery_logger
from signal_relay.settings import Settings

DIRECTION_LABELS = {
    "long": "多头",
    "short": "空头",
    "spot": "现货",
    "close": "平仓",
}


def _ts() -> int:
    return int(time.time() * 1000)


def sign(secret: str, timestamp_ms: int) -> str:
    """URL-encoded base64 HMAC-SHA256 of ``"{timestamp}\\n{secret}"`` keyed by the secret."""
    string_to_sign = f"{timestamp_ms}\n{secret}"
    digest = hmac.new(secret.encode("utf-8"), string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    return quote_plus(base64.b64encode(digest).decode("utf-8"))


def signed_webhook_url(webhook: str, secret: str, timestamp_ms: Optional[int] = None) -> str:
    if not secret:
        return webhook
    timestamp_ms = _ts() if timestamp_ms is None else timestamp_ms
    separator = "&" if "?" in webhook else "?"
    return f"{webhook}{separator}timestamp={timestamp_ms}&sign={sign(secret, timestamp_ms)}"


def _or(value: Any, fallback: str) -> str:
    if value is None or str(value).strip() in ("", "unknown"):
        return fallback
    return str(value)


def format_markdown(record: Dict[str, Any]) -> Dict[str, Any]:
    """DingTalk markdown payload for one pushed signal record."""
    direction = DIRECTION_LABELS.get(record.get("direction"), "未指定")
    entry = record.get("entry_price")
    entry = "市价" if entry in (None, "", "market price") else entry

    lines = [
        f"### 📊 KOL交易信号 [{record.get('quality_level', '')} {record.get('quality', '')}]",
        "",
        f"👤 {record.get('author', '')}",
        f"📈 交易对: {_or(record.get('symbol'), '未指定')}",
        f"➡️ 方向: {direction}",
        f"🎯 入场价: {entry}",
        f"🛑 止损: {_or(record.get('stop_loss'), '未设置')}",
        f"🎯 目标价: {_or(record.get('target_price'), '未设置')}",
        f"🔢 杠杆: {_or(record.get('leverage'), '未建议')}",
        f"📢 频道: {record.get('channel', '')}",
        f"⏰ 时间: {record.get('message_time', '')}",
        "",
        f"💡 分析理由:\n{_or(record.get('analysis'), '无')}",
        "",
    ]
    if record.get("original_link"):
        lines += [f"🔗 [点击查看原始消息]({record['original_link']})", ""]
    lines.append(f"📝 原始消息内容:\n{_or(record.get('message_content'), '无')}")

    return {
        "msgtype": "markdown",
        "markdown": {
            "title": f"{record.get('author', '')} - {record.get('symbol', '')}",
            "text": "\n".join(lines),
        },
    }


class DingTalkSink:
    def __init__(self, webhook: str, secret: str = "", timeout: float = 10.0,
                 client: Optional[httpx.AsyncClient] = None):
        self.webhook = webhook
        self.secret = secret
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> "DingTalkSink":
        return cls(settings.dingtalk_webhook, settings.dingtalk_secret, client=client)

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await client.post(
            signed_webhook_url(self.webhook, self.secret),
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        body = response.json()
        errcode = body.get("errcode") if isinstance(body, dict) else None
        if errcode != 0:
            errmsg = body.get("errmsg") if isinstance(body, dict) else body
            raise DeliveryError(f"DingTalk rejected message: {errmsg}", errcode=errcode)
        return body

    async def send(self, record: Dict[str, Any]) -> bool:
        """Push one formatted signal record. Failures are logged, never raised."""
        if not self.webhook:
            delivery_logger.warning("DingTalk webhook not configured, skipping push", {"signal_id": record.get("id")})
            return False

        payload = format_markdown(record)
        try:
            if self._client is not None:
                await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient() as client:
                    await self._post(client, payload)
        except DeliveryError as e:
            delivery_logger.error("DingTalk push failed", {
                "signal_id": record.get("id"),
                "errcode": e.errcode,
                "error": str(e),
            })
            return False
        except (httpx.HTTPError, ValueError) as e:
            delivery_logger.error("DingTalk push error", {"signal_id": record.get("id"), "error": str(e)})
            return False

        delivery_logger.info("DingTalk push succeeded", {
            "signal_id": record.get("id"),
            "author": record.get("author"),
            "symbol": record.get("symbol"),
        })
        return True
