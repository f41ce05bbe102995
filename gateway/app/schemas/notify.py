from pydantic import BaseModel

from gateway.app.constants import TOO_MANY_REQUESTS, NotifyStatus


class NotifyResponse(BaseModel):
    status: str = NotifyStatus.OK
    topic: str
    message: str


class NotifyErrorResponse(BaseModel):
    status: str = NotifyStatus.ERROR
    message: str = TOO_MANY_REQUESTS
