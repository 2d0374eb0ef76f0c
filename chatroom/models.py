# Pydantic models for participants and messages stored in MongoDB (Motor).
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

BROADCAST = 'Todos'
POSTABLE_TYPES = ('message', 'private_message')

ENTER_TEXT = 'has entered the room...'
LEAVE_TEXT = 'has left the room...'


class Participant(BaseModel):
    name: str
    lastSeen: int


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    frm: str = Field(..., alias='from')
    to: str
    text: str
    type: Literal['message', 'private_message', 'status']
    time: str

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)

    @classmethod
    def status(cls, name: str, text: str, time: str) -> 'Message':
        return cls(frm=name, to=BROADCAST, text=text, type='status', time=time)


class ParticipantIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)


class MessageIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    frm: str = Field(..., alias='from', min_length=1)
    to: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    type: Literal['message', 'private_message']
