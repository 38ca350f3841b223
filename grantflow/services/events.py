"""Decoding of transaction receipt logs."""

from __future__ import annotations

import abc
from typing import Any

from ..contracts import DecodedEvent, EventSchema, RawLog
from ..errors import EventDecodeError


class EventDecoder(metaclass=abc.ABCMeta):
    """Turns a raw log into a named event with arguments."""

    @abc.abstractmethod
    def decode(self, raw_log: RawLog, schema: EventSchema) -> DecodedEvent:
        """Decode ``raw_log`` or raise :class:`EventDecodeError`."""
        raise NotImplementedError


def _decode_word(word: str, type_: str) -> Any:
    value = word[2:] if word.startswith("0x") else word
    if len(value) != 64:
        raise EventDecodeError(f"Topic {word!r} is not a 32-byte word")
    try:
        number = int(value, 16)
    except ValueError:
        raise EventDecodeError(f"Topic {word!r} is not hex encoded") from None

    if type_ == "address":
        if number >> 160:
            raise EventDecodeError(f"Topic {word!r} does not hold an address")
        return "0x" + value[-40:]
    if type_.startswith("uint"):
        return number
    if type_ == "bytes32":
        return "0x" + value
    raise EventDecodeError(f"Unsupported indexed argument type: {type_}")


class TopicEventDecoder(EventDecoder):
    """Decodes events whose arguments of interest are all indexed topics."""

    def decode(self, raw_log: RawLog, schema: EventSchema) -> DecodedEvent:
        topics = raw_log.topics
        if not topics:
            raise EventDecodeError("Log has no topics")
        if not schema.topic:
            raise EventDecodeError(f"No signature topic configured for {schema.name}")
        if topics[0].lower() != schema.topic.lower():
            raise EventDecodeError(
                f"Log signature {topics[0]} does not match {schema.name}"
            )
        if len(topics) < len(schema.indexed) + 1:
            raise EventDecodeError(
                f"{schema.name} expects {len(schema.indexed)} indexed argument(s), "
                f"log has {len(topics) - 1}"
            )

        args = {
            argument.name: _decode_word(word, argument.type)
            for argument, word in zip(schema.indexed, topics[1:])
        }
        return DecodedEvent(event_name=schema.name, args=args)
