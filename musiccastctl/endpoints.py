"""Declarative mapping of CLI subcommands to Yamaha Extended Control endpoints.

Every domain (``zone``, ``tuner``, ``netusb``, ``cd``, ``clock``, ``dist``,
``system``) is a table from subcommand name to an :class:`Endpoint`.
Subcommand names containing a space (``"preset recall"``) are nested
commands. The CLI builds its parsers from these tables and
:meth:`Endpoint.reference` turns parsed values into an
:class:`~musiccastctl.musiccast_data.EndpointReference`.
"""
from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

from .const import CONTENT_TYPE_JSON, DEFAULT_ZONE
from .exceptions import MusicCastParamException
from .musiccast_data import EndpointReference

QUERY = "query"
PATH = "path"
BODY = "body"

# request body read from --file or --stdin
BODY_FILE = "file"
# request body built from the BODY params, or read from --stdin
BODY_FIELDS = "fields"


@dataclass(frozen=True, slots=True)
class Param:
    """A command argument and where its value goes in the request.

    ``name`` is the CLI spelling: ``"volume"`` for a positional argument,
    ``"--step"`` for an option. ``key`` defaults to the argument name with
    dashes replaced by underscores.
    """

    name: str
    key: str | None = None
    type: Callable[[str], Any] = str
    required: bool = False
    default: Any = None
    choices: tuple[str, ...] | None = None
    target: str = QUERY
    toggle: bool = False
    when: Callable[[Mapping[str, Any]], bool] | None = None
    path_values: Mapping[str, str] | None = None
    help: str | None = None

    @property
    def positional(self) -> bool:
        return not self.name.startswith("-")

    @property
    def dest(self) -> str:
        return self.name.lstrip("-").replace("-", "_")

    @property
    def query_key(self) -> str:
        return self.key or self.dest


def toggle(key: str = "enable", help: str | None = None) -> Param:
    return Param("--enable", key=key, toggle=True, default=True, help=help)


@dataclass(frozen=True, slots=True)
class Endpoint:
    path: str
    params: tuple[Param, ...] = ()
    fixed: tuple[tuple[str, str], ...] = ()
    zone_query: bool = False
    body: str | None = None
    help: str | None = None

    @property
    def method(self) -> str:
        return "POST" if self.body else "GET"

    def reference(
        self,
        values: Mapping[str, Any],
        zone: str | None = None,
        read_stdin: Callable[[], bytes] | None = None,
    ) -> EndpointReference:
        """Turn parsed command values into an endpoint reference.

        Parameters
        ----------
        values : Mapping[str, Any]
            Parsed argument values keyed by :attr:`Param.dest`.
        zone : str
            Zone used for zone scoped paths and ``zone`` query values.
        read_stdin : Callable[[], bytes]
            Reader for the request body when ``--stdin`` is given.
        """
        zone = (zone or "").strip() or DEFAULT_ZONE
        path_args = {"zone": zone}
        query: list[tuple[str, Any]] = []
        fields: dict[str, Any] = {}

        for param in self.params:
            value = values.get(param.dest, param.default)
            if param.when is not None and not param.when(values):
                continue
            if param.target == PATH:
                path_args[param.dest] = param.path_values[value] if param.path_values else value
            elif value is None:
                continue
            elif param.target == BODY:
                fields[param.query_key] = value
            else:
                query.append((param.query_key, value))

        query.extend(self.fixed)
        if self.zone_query:
            query.append(("zone", zone))

        body = self._body(values, fields, read_stdin)
        return EndpointReference.create(
            self.method,
            self.path.format(**path_args),
            query,
            body,
            CONTENT_TYPE_JSON if body else None,
        )

    def _body(
        self,
        values: Mapping[str, Any],
        fields: dict[str, Any],
        read_stdin: Callable[[], bytes] | None,
    ) -> bytes | None:
        if not self.body:
            return None
        if values.get("stdin"):
            if read_stdin is None:
                raise MusicCastParamException("Reading from stdin is not available.")
            return read_stdin()
        if self.body == BODY_FILE:
            file = (values.get("file") or "").strip()
            if not file:
                raise MusicCastParamException("--file is required or use --stdin")
            try:
                return Path(file).read_bytes()
            except OSError as err:
                raise MusicCastParamException(f"Cannot read {file}: {err.strerror}") from err
        missing = [
            param.name
            for param in self.params
            if param.target == BODY and param.required and not str(fields.get(param.query_key) or "").strip()
        ]
        if missing:
            raise MusicCastParamException(f"{' or '.join(missing)} or --stdin is required")
        return json.dumps(fields).encode()


def _volume_is_relative(values: Mapping[str, Any]) -> bool:
    return values.get("volume") in ("up", "down")


class Zone:
    """Commands of one zone, the zone is selected with ``--zone``."""

    COMMANDS: ClassVar[dict[str, Endpoint]] = {
        "status": Endpoint("{zone}/getStatus", help="Show power, volume, input and other zone status"),
        "sound-programs": Endpoint("{zone}/getSoundProgramList", help="List available sound programs"),
        "power": Endpoint(
            "{zone}/setPower",
            (Param("power", required=True, help="on, standby or toggle"),),
            help="Set zone power",
        ),
        "sleep": Endpoint(
            "{zone}/setSleep",
            (Param("sleep", required=True, help="0, 30, 60, 90 or 120 minutes"),),
            help="Set the sleep timer",
        ),
        "volume": Endpoint(
            "{zone}/setVolume",
            (
                Param("volume", required=True, help="Volume value, up or down"),
                Param("--step", type=int, default=1, when=_volume_is_relative, help="Step for up/down"),
            ),
            help="Set volume",
        ),
        "mute": Endpoint("{zone}/setMute", (toggle(),), help="Set mute"),
        "input": Endpoint(
            "{zone}/setInput",
            (Param("input", required=True, help="Input ID"), Param("--mode", help="Input change mode")),
            help="Select the zone input",
        ),
        "sound-program": Endpoint(
            "{zone}/setSoundProgram",
            (Param("program", required=True, help="Sound program ID"),),
            help="Select a sound program",
        ),
        "surround-3d": Endpoint("{zone}/set3dSurround", (toggle(),), help="Set 3D surround"),
        "direct": Endpoint("{zone}/setDirect", (toggle(),), help="Set direct"),
        "pure-direct": Endpoint("{zone}/setPureDirect", (toggle(),), help="Set pure direct"),
        "enhancer": Endpoint("{zone}/setEnhancer", (toggle(),), help="Set enhancer"),
        "tone": Endpoint(
            "{zone}/setToneControl",
            (Param("--mode"), Param("--bass", type=int), Param("--treble", type=int)),
            help="Set tone control",
        ),
        "eq": Endpoint(
            "{zone}/setEqualizer",
            (Param("--mode"), Param("--low", type=int), Param("--mid", type=int), Param("--high", type=int)),
            help="Set equalizer",
        ),
        "balance": Endpoint("{zone}/setBalance", (Param("--value", type=int, required=True),), help="Set L/R balance"),
        "dialogue-level": Endpoint(
            "{zone}/setDialogueLevel", (Param("--value", type=int, required=True),), help="Set dialogue level"
        ),
        "dialogue-lift": Endpoint(
            "{zone}/setDialogueLift", (Param("--value", type=int, required=True),), help="Set dialogue lift"
        ),
        "clear-voice": Endpoint("{zone}/setClearVoice", (toggle(),), help="Set clear voice"),
        "subwoofer-volume": Endpoint(
            "{zone}/setSubwooferVolume", (Param("--volume", type=int, required=True),), help="Set subwoofer volume"
        ),
        "bass-extension": Endpoint("{zone}/setBassExtension", (toggle(),), help="Set bass extension"),
        "signal": Endpoint("{zone}/getSignalInfo", help="Show audio/video signal information"),
        "prepare-input": Endpoint(
            "{zone}/prepareInputChange", (Param("--input", required=True),), help="Prepare an input change"
        ),
        "scene": Endpoint("{zone}/recallScene", (Param("--num", type=int, required=True),), help="Recall a scene"),
        "osd": Endpoint("{zone}/setContentsDisplay", (toggle(),), help="Set the on screen contents display"),
        "cursor": Endpoint("{zone}/controlCursor", (Param("cursor", required=True),), help="Send a cursor key"),
        "menu": Endpoint("{zone}/executeMenu", (Param("menu", required=True),), help="Execute a menu key"),
        "actual-volume": Endpoint(
            "{zone}/setActualVolume",
            (Param("--mode", required=True), Param("--value", type=float)),
            help="Set volume in dB or numeric mode",
        ),
        "surround-decoder": Endpoint(
            "{zone}/setSurroundDecoderType", (Param("--type", required=True),), help="Set surround decoder type"
        ),
        "link-control": Endpoint(
            "{zone}/setLinkControl", (Param("--control", required=True),), help="Set link control"
        ),
        "link-delay": Endpoint("{zone}/setLinkAudioDelay", (Param("--delay", required=True),), help="Set link delay"),
        "link-quality": Endpoint(
            "{zone}/setLinkAudioQuality", (Param("--quality", required=True),), help="Set link audio quality"
        ),
    }


class Tuner:
    """Tuner commands."""

    COMMANDS: ClassVar[dict[str, Endpoint]] = {
        "preset-info": Endpoint("tuner/getPresetInfo", (Param("--band", required=True),), help="List presets"),
        "play-info": Endpoint("tuner/getPlayInfo", help="Show tuner playback information"),
        "band": Endpoint("tuner/setBand", (Param("band", required=True, help="am, fm or dab"),), help="Set band"),
        "freq": Endpoint(
            "tuner/setFreq",
            (Param("--band", required=True), Param("--tuning", required=True), Param("--num", type=int)),
            help="Tune a frequency",
        ),
        "recall": Endpoint(
            "tuner/recallPreset",
            (Param("--band", required=True), Param("--num", type=int, required=True)),
            zone_query=True,
            help="Recall a preset",
        ),
        "switch": Endpoint("tuner/switchPreset", (Param("--dir", required=True),), help="Switch to next/previous preset"),
        "store": Endpoint("tuner/storePreset", (Param("--num", type=int, required=True),), help="Store a preset"),
        "clear": Endpoint(
            "tuner/clearPreset",
            (Param("--band", required=True), Param("--num", type=int, required=True)),
            help="Clear a preset",
        ),
        "auto-preset start": Endpoint("tuner/startAutoPreset", fixed=(("band", "fm"),), help="Start FM auto preset"),
        "auto-preset cancel": Endpoint("tuner/cancelAutoPreset", help="Cancel auto preset"),
        "dab-scan start": Endpoint("tuner/startDabInitialScan", help="Start the DAB initial scan"),
        "dab-scan cancel": Endpoint("tuner/cancelDabInitialScan", help="Cancel the DAB initial scan"),
        "dab-service": Endpoint("tuner/setDabService", (Param("--dir", required=True),), help="Select a DAB service"),
    }


class NetUSB:
    """Network and USB source commands."""

    COMMANDS: ClassVar[dict[str, Endpoint]] = {
        "preset-info": Endpoint("netusb/getPresetInfo", help="List presets"),
        "play-info": Endpoint("netusb/getPlayInfo", help="Show playback information"),
        "playback": Endpoint("netusb/setPlayback", (Param("playback", required=True),), help="Control playback"),
        "seek": Endpoint(
            "netusb/setPlayPosition", (Param("--position", type=int, required=True),), help="Seek to a position"
        ),
        "repeat": Endpoint("netusb/setRepeat", (Param("mode", required=True),), help="Set repeat mode"),
        "shuffle": Endpoint("netusb/setShuffle", (Param("mode", required=True),), help="Set shuffle mode"),
        "repeat-toggle": Endpoint("netusb/toggleRepeat", help="Toggle repeat"),
        "shuffle-toggle": Endpoint("netusb/toggleShuffle", help="Toggle shuffle"),
        "list": Endpoint(
            "netusb/getListInfo",
            (
                Param("--input", required=True),
                Param("--index", type=int),
                Param("--size", type=int),
                Param("--lang"),
            ),
            help="Browse a list",
        ),
        "list-control": Endpoint(
            "netusb/setListControl",
            (Param("--list-id"), Param("--type", required=True), Param("--index", type=int)),
            zone_query=True,
            help="Select, play or return in a list",
        ),
        "search": Endpoint(
            "netusb/setSearchString",
            (Param("--string", required=True, target=BODY), Param("--list-id", target=BODY)),
            body=BODY_FIELDS,
            help="Send a search string",
        ),
        "preset recall": Endpoint(
            "netusb/recallPreset", (Param("--num", type=int, required=True),), zone_query=True, help="Recall a preset"
        ),
        "preset store": Endpoint("netusb/storePreset", (Param("--num", type=int, required=True),), help="Store a preset"),
        "preset clear": Endpoint("netusb/clearPreset", (Param("--num", type=int, required=True),), help="Clear a preset"),
        "preset move": Endpoint(
            "netusb/movePreset",
            (Param("--from", type=int, required=True), Param("--to", type=int, required=True)),
            help="Move a preset",
        ),
        "recent get": Endpoint("netusb/getRecentInfo", help="List recently played items"),
        "recent recall": Endpoint(
            "netusb/recallRecentItem",
            (Param("--num", type=int, required=True),),
            zone_query=True,
            help="Recall a recent item",
        ),
        "recent clear": Endpoint("netusb/clearRecentInfo", help="Clear recently played items"),
        "settings": Endpoint("netusb/getSettings", help="Show settings"),
        "quality": Endpoint(
            "netusb/setQuality",
            (Param("--input", required=True), Param("--value", required=True)),
            help="Set streaming quality",
        ),
        "account-status": Endpoint("netusb/getAccountStatus", help="Show streaming account status"),
        "service-info": Endpoint(
            "netusb/getServiceInfo",
            (Param("--input", required=True), Param("--type")),
            help="Show streaming service information",
        ),
    }


class CD:
    """CD player commands."""

    COMMANDS: ClassVar[dict[str, Endpoint]] = {
        "play-info": Endpoint("cd/getPlayInfo", help="Show playback information"),
        "playback": Endpoint(
            "cd/setPlayback",
            (Param("playback", required=True), Param("--num", type=int, help="Track number for track_select")),
            help="Control playback",
        ),
        "tray": Endpoint("cd/toggleTray", help="Open or close the tray"),
        "repeat": Endpoint("cd/setRepeat", (Param("mode", required=True),), help="Set repeat mode"),
        "shuffle": Endpoint("cd/setShuffle", (Param("mode", required=True),), help="Set shuffle mode"),
        "repeat-toggle": Endpoint("cd/toggleRepeat", help="Toggle repeat"),
        "shuffle-toggle": Endpoint("cd/toggleShuffle", help="Toggle shuffle"),
        "direct": Endpoint("cd/setDirect", (toggle(),), help="Set CD direct"),
    }


class Clock:
    """Clock and alarm commands."""

    COMMANDS: ClassVar[dict[str, Endpoint]] = {
        "settings": Endpoint("clock/getSettings", help="Show clock settings"),
        "auto-sync": Endpoint("clock/setAutoSync", (toggle(),), help="Set automatic time sync"),
        "datetime": Endpoint(
            "clock/setDateAndTime",
            (Param("--date-time", required=True, help="YYMMDDhhmmss"),),
            help="Set date and time",
        ),
        "format": Endpoint("clock/setClockFormat", (Param("format", required=True),), help="Set 12h/24h format"),
        "alarm": Endpoint("clock/setAlarmSettings", body=BODY_FILE, help="Apply alarm settings from JSON"),
    }


class Dist:
    """Link distribution commands."""

    COMMANDS: ClassVar[dict[str, Endpoint]] = {
        "info": Endpoint("dist/getDistributionInfo", help="Show link distribution information"),
        "server": Endpoint("dist/setServerInfo", body=BODY_FILE, help="Set up a link distribution server"),
        "client": Endpoint("dist/setClientInfo", body=BODY_FILE, help="Set up link distribution clients"),
        "start": Endpoint("dist/startDistribution", (Param("--num", type=int, required=True),), help="Start distribution"),
        "stop": Endpoint("dist/stopDistribution", help="Stop distribution"),
        "group-name": Endpoint(
            "dist/setGroupName",
            (Param("--name", required=True, target=BODY),),
            body=BODY_FIELDS,
            help="Set the group name",
        ),
    }


class System:
    """System commands."""

    COMMANDS: ClassVar[dict[str, Endpoint]] = {
        "device-info": Endpoint("system/getDeviceInfo", help="Show model and firmware information"),
        "features": Endpoint("system/getFeatures", help="Show supported features"),
        "network-status": Endpoint("system/getNetworkStatus", help="Show network status"),
        "func-status": Endpoint("system/getFuncStatus", help="Show system function status"),
        "speaker-a": Endpoint("system/setSpeakerA", (toggle(),), help="Set speaker A"),
        "speaker-b": Endpoint("system/setSpeakerB", (toggle(),), help="Set speaker B"),
        "dimmer": Endpoint("system/setDimmer", (Param("--value", type=int, required=True),), help="Set FL/LED dimmer"),
        "zoneb-volume-sync": Endpoint("system/setZoneBVolumeSync", (toggle(),), help="Set zone B volume sync"),
        "hdmi-out": Endpoint(
            "system/{output}",
            (
                Param(
                    "output",
                    required=True,
                    choices=("1", "2"),
                    target=PATH,
                    path_values={"1": "setHdmiOut1", "2": "setHdmiOut2"},
                ),
                toggle(),
            ),
            help="Enable or disable an HDMI output",
        ),
        "name get": Endpoint("system/getNameText", (Param("--id"),), help="Show zone, input or sound program names"),
        "name set": Endpoint(
            "system/setNameText",
            (Param("--id", required=True), Param("--text", required=True)),
            help="Rename a zone, input or sound program",
        ),
        "location": Endpoint("system/getLocationInfo", help="Show location information"),
        "ir": Endpoint("system/sendIrCode", (Param("--code", required=True, help="IR code in 8-digit hex"),), help="Send an IR code"),
        "auto-play": Endpoint("system/setAutoPlay", (toggle(),), help="Set auto play"),
        "speaker-pattern": Endpoint(
            "system/setSpeakerPattern", (Param("--num", type=int, required=True),), help="Select a speaker pattern"
        ),
        "party-mode": Endpoint("system/setPartyMode", (toggle(),), help="Set party mode"),
        "reboot": Endpoint(
            "system/{scope}",
            (
                Param(
                    "--scope",
                    required=True,
                    choices=("network", "system"),
                    target=PATH,
                    path_values={"network": "requestNetworkReboot", "system": "requestSystemReboot"},
                ),
            ),
            help="Reboot the network module or the whole system",
        ),
    }


DOMAINS: dict[str, type] = {
    "zone": Zone,
    "tuner": Tuner,
    "netusb": NetUSB,
    "cd": CD,
    "clock": Clock,
    "dist": Dist,
    "system": System,
}
