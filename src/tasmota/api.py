"""
=============================================================================
DEVICE COMMAND API
=============================================================================

Typed access to a device's command endpoint.

Every command is a single request to

    http://<device>/cm?cmnd=<Command>[%20<Value>]

and every answer is a small JSON object named after the command:

    GET  cm?cmnd=Power          → {"POWER":"ON"}
    GET  cm?cmnd=Modules        → {"Modules":{"0":"Generic","1":"Sonoff Basic"}}
    GET  cm?cmnd=Status%200     → {"Status":{...},"StatusSNS":{"ENERGY":{...}},...}
    PUT  cm?cmnd=Power%20OFF    → {"POWER":"OFF"}

=============================================================================
NAME MATCHING
=============================================================================

Devices aren't consistent about case or numbering: a query for "Power"
answers "POWER", a query for "Module0" answers "Module", a multi-channel
sensor reports "Energy1". compare_names() absorbs that:

    compare_names("POWER",   "Power",   strict=True)   → True   (case)
    compare_names("Module0", "Module",  strict=False)  → True   (digits)
    compare_names("Module0", "Module",  strict=True)   → False

=============================================================================
RESULTS
=============================================================================

This layer never raises for device or transport trouble, nor for a base
URL the client refuses (https, bad port). It returns plain
strings the caller checks against:

    INVALID                            get_value found nothing usable
    NOT_FOUND                          get_value_from_path found nothing
    HTTP-Returncode: <code> : <text>   set_value was not acknowledged

=============================================================================
"""

import logging
from typing import Dict, List, Optional

from .client import HTTPClient
from .errors import HTTPClientError
from .http.status_codes import HTTPStatus
from .http.url import build_command_url, normalize_base_url
from .jsontree import JsonDocument, JsonNode, JsonParseError, parse_json


INVALID = "INVALID"
NOT_FOUND = "NOT_FOUND"
RETURN_CODE_PREFIX = "HTTP-Returncode: "

STATUS_COMMAND = "Status 0"
MODULES_COMMAND = "Modules"
POWER_COMMAND = "Power"


def _return_code(code: int, text: str) -> str:
    return f"{RETURN_CODE_PREFIX}{code} : {text}"


class TasmotaAPI:
    """
    Command API of one device.

    Usage:
        api = TasmotaAPI("http://tasmota-994e5a-3674/")
        api.get_value("Power")                          # "ON"
        api.get_value_from_path("StatusSNS:ENERGY:Power")
        api.set_value("Power", "OFF")                   # "OFF"
    """

    def __init__(
        self,
        host_url: str,
        client: Optional[HTTPClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            host_url: Base URL of the device; a trailing "/" is added if missing.
            client: HTTP client to use. One with default config if not provided.
            logger: Logger for this component; defaults to the module logger.
        """
        self.host_url = normalize_base_url(host_url)
        self.logger = logger or logging.getLogger(__name__)
        self.client = client or HTTPClient(logger=self.logger)

    # ─────────────────────────────────────────────────────────────────────
    # Name helpers
    # ─────────────────────────────────────────────────────────────────────

    @staticmethod
    def compare_names(name1: str, name2: str, strict: bool) -> bool:
        """
        True if two JSON member names refer to the same thing.

        Identical names always match. Otherwise, unless strict, trailing
        digits are stripped from both; what's left is compared ignoring case.
        """
        if name1 == name2:
            return True

        if not strict:
            name1 = name1.rstrip("0123456789")
            name2 = name2.rstrip("0123456789")

        return name1.lower() == name2.lower()

    @staticmethod
    def get_path_segments(path: str) -> List[str]:
        """Split "A:B:C" into ["A", "B", "C"], dropping empty segments."""
        return [segment for segment in path.split(":") if segment]

    # ─────────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────────

    def get_json_response(self, command: str) -> Optional[JsonDocument]:
        """
        GET a command and parse the answer.

        Returns:
            The parsed document (caller releases it), or None if the URL is
            unusable, the request failed, the status wasn't 200, the body
            was truncated or the body isn't JSON.
        """
        url = build_command_url(self.host_url, command)
        try:
            response = self.client.get(url)
        except (HTTPClientError, ValueError) as e:
            self.logger.warning(f"Command {command!r} failed: {e}")
            return None

        if response.status_code != HTTPStatus.OK:
            self.logger.info(f"Command {command!r} returned {response.status_code} {response.reason}")
            return None

        if not response.complete:
            self.logger.warning(f"Command {command!r}: response truncated, ignoring")
            return None

        try:
            return parse_json(response.content)
        except JsonParseError as e:
            self.logger.warning(f"Command {command!r}: {e}")
            return None

    def get_value(self, name: str) -> str:
        """
        Query a single value, e.g. "Power", "Module0", "AP".

        Returns:
            The scalar answer, or the first scalar inside a one-level object
            answer; INVALID otherwise.
        """
        doc = self.get_json_response(name)
        if doc is None:
            return INVALID

        with doc:
            root = self._first_named_value(doc)
            if root is None or not self.compare_names(root[0], name, strict=False):
                return INVALID
            text = self._scalar_text(root[1])
            return INVALID if text is None else text

    def get_value_from_path(self, path: str) -> str:
        """
        Look up a value in the full status report.

        The path names nested members separated by ':' ("StatusSNS:ENERGY:Power").
        Inner segments ignore case and trailing digits, so "ENERGY" also
        finds "Energy1". The last segment ignores case only. Numeric
        segments index into arrays ("StatusSNS:ENERGY:Current:0").

        Returns:
            The leaf value as text, or NOT_FOUND.
        """
        segments = self.get_path_segments(path)
        if not segments:
            return NOT_FOUND

        doc = self.get_json_response(STATUS_COMMAND)
        if doc is None:
            return NOT_FOUND

        with doc:
            node: Optional[JsonNode] = doc.root
            for segment in segments[:-1]:
                node = self._step(node, segment, strict=False)
                if node is None:
                    return NOT_FOUND

            leaf = self._step(node, segments[-1], strict=True)
            if leaf is None:
                return NOT_FOUND
            return leaf.value_as_string()

    def get_modules(self) -> Dict[str, str]:
        """
        Supported modules as {id: name}; empty if the query failed.
        """
        doc = self.get_json_response(MODULES_COMMAND)
        if doc is None:
            return {}

        with doc:
            root = self._first_named_value(doc)
            if root is None:
                return {}

            name, node = root
            if not self.compare_names(name, MODULES_COMMAND, strict=True) or not node.is_object:
                return {}

            return {module_id: value.value_as_string() for module_id, value in node.named_values()}

    def get_power(self) -> int:
        """1 if the relay is on, 0 if off, -1 if unknown."""
        value = self.get_value(POWER_COMMAND)
        if value == "ON":
            return 1
        if value == "OFF":
            return 0
        return -1

    def set_value(self, name: str, value: str) -> str:
        """
        Write a value, e.g. set_value("Power", "OFF").

        Returns:
            The value the device acknowledged, or
            "HTTP-Returncode: <code> : <text>" when the device answered
            something else (code -1 if there was no answer at all).
        """
        url = build_command_url(self.host_url, name, value)
        try:
            response = self.client.put(url)
        except (HTTPClientError, ValueError) as e:
            self.logger.warning(f"Setting {name!r} failed: {e}")
            return _return_code(-1, str(e))

        if response.status_code != HTTPStatus.OK or not response.complete:
            return _return_code(response.status_code, response.text)

        try:
            doc = parse_json(response.content)
        except JsonParseError as e:
            self.logger.warning(f"Setting {name!r}: {e}")
            return _return_code(response.status_code, response.text)

        with doc:
            root = self._first_named_value(doc)
            if root is not None and self.compare_names(root[0], name, strict=False):
                acknowledged = self._scalar_text(root[1])
                if acknowledged is not None:
                    return acknowledged

        return _return_code(response.status_code, response.text)

    # ─────────────────────────────────────────────────────────────────────
    # Tree helpers
    # ─────────────────────────────────────────────────────────────────────

    @staticmethod
    def _first_named_value(doc: JsonDocument):
        values = doc.named_values()
        return values[0] if values else None

    @staticmethod
    def _scalar_text(node: JsonNode) -> Optional[str]:
        """A scalar's text, or the first scalar member of an object."""
        if node.is_scalar:
            return node.value_as_string()
        for _, child in node.named_values():
            if child.is_scalar:
                return child.value_as_string()
        return None

    def _step(self, node: JsonNode, segment: str, strict: bool) -> Optional[JsonNode]:
        if node.is_array:
            if not segment.isdecimal():
                return None
            index = int(segment)
            return node[index] if index < len(node) else None

        return node.find(segment, lambda member, wanted: self.compare_names(member, wanted, strict))
