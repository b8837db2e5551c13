from typing import NamedTuple, Optional, Dict, Any


class OutcomeRecord(NamedTuple):
    url: str
    status_code: int = 0  # 0 when no response headers were received
    body: str = ""
    error: Optional[str] = None

    @classmethod
    def failure(cls, url: str, reason: str, status_code: int = 0) -> "OutcomeRecord":
        return cls(url=url, status_code=status_code, body="", error=reason)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "status_code": self.status_code,
            "body": self.body,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
