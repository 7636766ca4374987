"""Send batches of modify actions to /v3/send.

The whole batch goes out in one request and Pocket applies the actions in
order. The response carries two arrays parallel to the request:

    {"status": 0,
     "action_results": [true, {"item_id": "...", ...}, false],
     "action_errors": [null, null, {"message": "...", "code": 422, ...}]}

Results are matched to actions by position only: an "add" has no item id
until Pocket assigns one, so ids cannot be used to pair them up. A failed
action is reported in its ActionResult; only a failure of the request as a
whole raises.
"""

import logging
import time
from collections.abc import Callable, Iterable

from .actions import Action, ActionResult
from .errors import ApiError, ResponseFormatError, ValidationError
from .parser import parse_item
from .transport import PocketTransport

logger = logging.getLogger(__name__)

SEND_PATH = "/send"


class ActionBatcher:
    def __init__(
        self,
        transport: PocketTransport,
        clock: Callable[[], float] = time.time,
    ):
        self._transport = transport
        self._clock = clock

    def encode(self, actions: Iterable[Action]) -> list[dict]:
        """Encode actions in order; actions without a time get the current one."""
        now = int(self._clock())
        encoded = []
        for action in actions:
            if not isinstance(action, Action) or type(action).name == "":
                raise ValidationError(f"Not a modify action: {action!r}")
            encoded.append(action.to_wire(default_time=now))
        return encoded

    async def send(
        self,
        actions: Iterable[Action],
        credentials: dict,
    ) -> list[ActionResult]:
        """Send a batch and return one ActionResult per action, in order.

        Args:
            actions: The batch. Consumed once.
            credentials: consumer_key and access_token for the request body.
        """
        batch = tuple(actions)
        if not batch:
            raise ValidationError("Cannot send an empty batch of actions")

        payload = {**credentials, "actions": self.encode(batch)}
        logger.debug("Sending batch of %d actions", len(batch))
        body = await self._transport.post(SEND_PATH, payload)

        results = decode_results(batch, body)
        failed = sum(1 for r in results if not r.ok)
        if failed:
            logger.warning("%d of %d actions failed", failed, len(results))
        else:
            logger.info("All %d actions succeeded", len(results))
        return results


def decode_results(batch: tuple[Action, ...], body: dict) -> list[ActionResult]:
    """Zip the response arrays back onto the batch by position."""
    raw_results = body.get("action_results")
    if not isinstance(raw_results, list):
        raise ResponseFormatError("Response has no action_results array")
    if len(raw_results) != len(batch):
        raise ResponseFormatError(
            f"Sent {len(batch)} actions but got {len(raw_results)} results"
        )

    raw_errors = body.get("action_errors")
    if not isinstance(raw_errors, list) or len(raw_errors) != len(batch):
        raw_errors = [None] * len(batch)

    results = []
    for action, outcome, error in zip(batch, raw_results, raw_errors):
        if outcome is False or outcome is None:
            results.append(
                ActionResult(action=action, ok=False, error=_action_error(action, error))
            )
        elif isinstance(outcome, dict):
            results.append(ActionResult(action=action, ok=True, item=parse_item(outcome)))
        else:
            results.append(ActionResult(action=action, ok=True))
    return results


def _action_error(action: Action, raw) -> ApiError:
    if isinstance(raw, dict):
        code = raw.get("code")
        try:
            code = int(code) if code is not None else None
        except (TypeError, ValueError):
            code = None
        message = raw.get("message") or f"{action.name} action failed"
        return ApiError(str(message), code=code)
    return ApiError(f"{action.name} action failed", code=None)
