"""
Voice response builder.

``build_voice_response`` turns a classified route into a structured call-control
document; ``render_twiml`` serializes that document into TwiML. Building has
no side effects, so routing can be tested without Twilio.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from twilio.twiml.voice_response import VoiceResponse

from callbridge.routing.models import InboundRoute, OutboundRoute, Route, Unroutable
from callbridge.telephony.correlation import CorrelationToken, callback_url

RECORD_DUAL = "record-from-answer-dual"
CALLBACK_EVENT_COMPLETED = "completed"
CALLBACK_METHOD = "POST"

STATUS_CALLBACK_PATH = "/call-status"
RECORDING_CALLBACK_PATH = "/recording-callback"


@dataclass(frozen=True)
class VoiceResponsePolicy:
    """Static knobs applied to every document."""

    record_calls: bool = True
    no_route_message: str = "Personne n'est disponible pour prendre cet appel."
    no_route_language: str = "fr-FR"
    status_callback_path: str = STATUS_CALLBACK_PATH
    recording_callback_path: str = RECORDING_CALLBACK_PATH


@dataclass(frozen=True)
class DialNumber:
    number: str
    status_callback: str | None = None


@dataclass(frozen=True)
class DialClient:
    identity: str
    status_callback: str | None = None


@dataclass(frozen=True)
class Dial:
    target: Union[DialNumber, DialClient]
    caller_id: str | None = None
    record: str | None = None
    recording_status_callback: str | None = None


@dataclass(frozen=True)
class Say:
    message: str
    language: str


@dataclass(frozen=True)
class Hangup:
    pass


Verb = Union[Dial, Say, Hangup]


@dataclass(frozen=True)
class VoiceDocument:
    verbs: tuple[Verb, ...] = field(default_factory=tuple)

    @property
    def dial(self) -> Dial | None:
        for verb in self.verbs:
            if isinstance(verb, Dial):
                return verb
        return None


def build_voice_response(
    route: Route,
    base_url: str,
    policy: VoiceResponsePolicy | None = None,
) -> VoiceDocument:
    """Build the call-control document for ``route``.

    ``base_url`` is the public URL Twilio reaches this service on; callback
    URLs are built from it and carry the route's correlation token.
    """
    policy = policy or VoiceResponsePolicy()

    match route:
        case OutboundRoute(context=ctx):
            status_cb, recording_cb = _callbacks(_token_for(route), base_url, policy)
            return VoiceDocument(
                verbs=(
                    Dial(
                        target=DialNumber(number=ctx.target_number or "", status_callback=status_cb),
                        caller_id=ctx.caller_number,
                        record=RECORD_DUAL if policy.record_calls else None,
                        recording_status_callback=recording_cb,
                    ),
                )
            )
        case InboundRoute(context=ctx):
            status_cb, recording_cb = _callbacks(_token_for(route), base_url, policy)
            return VoiceDocument(
                verbs=(
                    Dial(
                        target=DialClient(identity=ctx.agent_identity or "", status_callback=status_cb),
                        record=RECORD_DUAL if policy.record_calls else None,
                        recording_status_callback=recording_cb,
                    ),
                )
            )
        case Unroutable():
            return apology_document(policy)

    raise TypeError(f"Unhandled route type: {type(route).__name__}")


def _token_for(route: Route) -> CorrelationToken:
    return CorrelationToken.from_context(route.context)


def apology_document(policy: VoiceResponsePolicy | None = None) -> VoiceDocument:
    policy = policy or VoiceResponsePolicy()
    return VoiceDocument(
        verbs=(
            Say(message=policy.no_route_message, language=policy.no_route_language),
            Hangup(),
        )
    )


def _callbacks(
    token: CorrelationToken,
    base_url: str,
    policy: VoiceResponsePolicy,
) -> tuple[str, str | None]:
    status_cb = callback_url(base_url, policy.status_callback_path, token)
    recording_cb = (
        callback_url(base_url, policy.recording_callback_path, token) if policy.record_calls else None
    )
    return status_cb, recording_cb


def render_twiml(document: VoiceDocument) -> str:
    """Serialize a document into TwiML markup."""
    response = VoiceResponse()

    for verb in document.verbs:
        if isinstance(verb, Dial):
            dial_attrs: dict[str, str] = {}
            if verb.caller_id:
                dial_attrs["caller_id"] = verb.caller_id
            if verb.record:
                dial_attrs["record"] = verb.record
            if verb.recording_status_callback:
                dial_attrs["recording_status_callback"] = verb.recording_status_callback
                dial_attrs["recording_status_callback_event"] = CALLBACK_EVENT_COMPLETED
                dial_attrs["recording_status_callback_method"] = CALLBACK_METHOD
            dial = response.dial(**dial_attrs)

            noun_attrs: dict[str, str] = {}
            if verb.target.status_callback:
                noun_attrs["status_callback"] = verb.target.status_callback
                noun_attrs["status_callback_event"] = CALLBACK_EVENT_COMPLETED
                noun_attrs["status_callback_method"] = CALLBACK_METHOD

            if isinstance(verb.target, DialNumber):
                dial.number(verb.target.number, **noun_attrs)
            else:
                dial.client(verb.target.identity, **noun_attrs)
        elif isinstance(verb, Say):
            response.say(verb.message, language=verb.language)
        elif isinstance(verb, Hangup):
            response.hangup()

    return str(response)
