"""
METAR/TAF payload parsers.

The Aviation Weather Center has served two payload shapes over time:

- current: a JSON array of records with structured fields (``icaoId``,
  ``rawOb``, ``temp``, ``clouds`` ...)
- legacy: XML from the dataserver endpoint with one flat tag per field
  (``<station_id>``, ``<raw_text>``, ``<temp_c>`` ...)

Both parsers produce the same AviationReport; the adapter selects one by
the configured feed format.
"""
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from weather_ingest.core.api_errors import ParseFailure
from weather_ingest.core.models import ReportKind
from weather_ingest.core.units import (
    flight_category,
    hpa_to_inches,
    parse_timestamp,
    to_decimal,
    to_int,
)


CEILING_COVERS = {"BKN", "OVC", "OVX", "VV"}


@dataclass
class AviationReport:
    """One METAR or TAF in canonical units, before it is tied to a location."""

    report_type: ReportKind
    raw_text: str
    observation_time: datetime
    airport_code: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    temperature_celsius: Optional[Decimal] = None
    dewpoint_celsius: Optional[Decimal] = None
    wind_speed_knots: Optional[int] = None
    wind_direction: Optional[int] = None
    wind_gust_knots: Optional[int] = None
    visibility_miles: Optional[Decimal] = None
    altimeter_inches: Optional[Decimal] = None
    flight_category: Optional[str] = None
    ceiling_feet: Optional[int] = None
    sky_condition: Optional[str] = None
    weather_conditions: Optional[str] = None
    report_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_target(self) -> bool:
        return bool(self.airport_code) or (
            self.latitude is not None and self.longitude is not None
        )


def parse_visibility(value: Any) -> Optional[Decimal]:
    """Visibility in statute miles; "10+" means at least 10."""
    if value is None:
        return None
    text = str(value).strip().rstrip("+")
    if "/" in text and " " not in text:
        numerator, _, denominator = text.partition("/")
        num, den = to_decimal(numerator), to_decimal(denominator)
        if num is None or not den:
            return None
        return (num / den).quantize(Decimal("0.01"))
    return to_decimal(text)


def summarize_sky(layers: List[Dict[str, Any]]) -> tuple:
    """
    Reduce cloud layers to (sky condition string, ceiling in feet).

    The ceiling is the lowest broken, overcast or obscured layer.
    """
    parts = []
    ceiling = None
    for layer in layers:
        cover = (layer.get("cover") or "").strip().upper()
        if not cover:
            continue
        base = to_int(layer.get("base"))
        parts.append(f"{cover}{base // 100:03d}" if base is not None else cover)
        if cover in CEILING_COVERS and base is not None:
            ceiling = base if ceiling is None else min(ceiling, base)
    return (" ".join(parts) or None), ceiling


def _normalize_code(value: Any) -> Optional[str]:
    if value is None:
        return None
    code = str(value).strip().upper()
    return code or None


def _wind_direction(value: Any) -> Optional[int]:
    # "VRB" (variable) has no single direction
    return to_int(value)


class JsonAviationParser:
    """Current format: JSON array of structured-field records."""

    FORMAT = "json"

    def split(
        self, payload: Union[list, dict, None], kind: Optional[ReportKind] = None
    ) -> List[Dict[str, Any]]:
        if payload is None:
            return []
        if isinstance(payload, dict):
            # Some deployments wrap the array
            payload = payload.get("data") or payload.get("features") or []
        if not isinstance(payload, list):
            raise ParseFailure("Expected a JSON array of reports", source="aviation")
        return payload

    def parse(self, item: Dict[str, Any], kind: ReportKind) -> AviationReport:
        if not isinstance(item, dict):
            raise ParseFailure(f"Expected an object, got {type(item).__name__}", source="aviation")

        if kind == ReportKind.METAR:
            raw_text = item.get("rawOb")
            observed = parse_timestamp(item.get("reportTime")) or parse_timestamp(
                item.get("obsTime")
            )
        else:
            raw_text = item.get("rawTAF")
            observed = (
                parse_timestamp(item.get("issueTime"))
                or parse_timestamp(item.get("bulletinTime"))
                or parse_timestamp(item.get("validTimeFrom"))
            )

        if not raw_text:
            raise ParseFailure(f"{kind.value} record has no raw text", source="aviation", record=item)
        if observed is None:
            raise ParseFailure(
                f"{kind.value} record has no usable observation time", source="aviation", record=item
            )

        report = AviationReport(
            report_type=kind,
            raw_text=str(raw_text),
            observation_time=observed,
            airport_code=_normalize_code(item.get("icaoId")),
            latitude=to_decimal(item.get("lat")),
            longitude=to_decimal(item.get("lon")),
            report_data=item,
        )

        if kind == ReportKind.METAR:
            report.temperature_celsius = to_decimal(item.get("temp"))
            report.dewpoint_celsius = to_decimal(item.get("dewp"))
            report.wind_direction = _wind_direction(item.get("wdir"))
            report.wind_speed_knots = to_int(item.get("wspd"))
            report.wind_gust_knots = to_int(item.get("wgst"))
            report.visibility_miles = parse_visibility(item.get("visib"))
            report.altimeter_inches = _json_altimeter(item.get("altim"))
            report.weather_conditions = item.get("wxString") or None

            clouds = item.get("clouds")
            if isinstance(clouds, list):
                report.sky_condition, report.ceiling_feet = summarize_sky(clouds)
            elif item.get("cover"):
                report.sky_condition = str(item.get("cover"))
            if item.get("ceil") is not None:
                report.ceiling_feet = to_int(item.get("ceil"))

            category = item.get("fltCat") or item.get("flightCategory")
            report.flight_category = category or flight_category(
                report.ceiling_feet, report.visibility_miles
            )

        return report


def _json_altimeter(value: Any) -> Optional[Decimal]:
    """The JSON feed reports hPa; older JSON revisions reported inHg."""
    number = to_decimal(value)
    if number is None:
        return None
    if number > 100:
        return hpa_to_inches(number)
    return number.quantize(Decimal("0.01"))


class XmlAviationParser:
    """Legacy format: dataserver XML with one tag per field."""

    FORMAT = "xml"

    TAGS = {
        ReportKind.METAR: "METAR",
        ReportKind.TAF: "TAF",
    }

    def split(self, payload: Optional[str], kind: Optional[ReportKind] = None) -> List[ET.Element]:
        if not payload:
            return []
        try:
            root = ET.fromstring(payload)
        except ET.ParseError as e:
            raise ParseFailure(f"Invalid XML payload: {e}", source="aviation")

        data = root.find("data")
        if data is None:
            data = root
        if kind is not None:
            return data.findall(self.TAGS[kind])
        return [child for child in data if child.tag in self.TAGS.values()]

    def parse(self, element: ET.Element, kind: ReportKind) -> AviationReport:
        def text(tag: str) -> Optional[str]:
            value = element.findtext(tag)
            if value is None:
                return None
            value = value.strip()
            return value or None

        raw_text = text("raw_text")
        if kind == ReportKind.METAR:
            observed = parse_timestamp(text("observation_time"))
        else:
            observed = parse_timestamp(text("issue_time")) or parse_timestamp(
                text("bulletin_time")
            )

        if not raw_text:
            raise ParseFailure(f"{kind.value} element has no raw_text", source="aviation")
        if observed is None:
            raise ParseFailure(
                f"{kind.value} element has no usable observation time", source="aviation"
            )

        report = AviationReport(
            report_type=kind,
            raw_text=raw_text,
            observation_time=observed,
            airport_code=_normalize_code(text("station_id")),
            latitude=to_decimal(text("latitude")),
            longitude=to_decimal(text("longitude")),
            report_data=element_to_dict(element),
        )

        if kind == ReportKind.METAR:
            report.temperature_celsius = to_decimal(text("temp_c"))
            report.dewpoint_celsius = to_decimal(text("dewpoint_c"))
            report.wind_direction = _wind_direction(text("wind_dir_degrees"))
            report.wind_speed_knots = to_int(text("wind_speed_kt"))
            report.wind_gust_knots = to_int(text("wind_gust_kt"))
            report.visibility_miles = parse_visibility(text("visibility_statute_mi"))
            altimeter = to_decimal(text("altim_in_hg"))
            report.altimeter_inches = (
                altimeter.quantize(Decimal("0.01")) if altimeter is not None else None
            )
            report.weather_conditions = text("wx_string")

            layers = [
                {"cover": sky.get("sky_cover"), "base": sky.get("cloud_base_ft_agl")}
                for sky in element.findall("sky_condition")
            ]
            report.sky_condition, report.ceiling_feet = summarize_sky(layers)

            report.flight_category = text("flight_category") or flight_category(
                report.ceiling_feet, report.visibility_miles
            )

        return report


def element_to_dict(element: ET.Element) -> Dict[str, Any]:
    """
    Flatten a flat-tag XML record into a dict.

    Repeated tags (sky_condition, forecast) become lists; attributes of
    empty elements are kept as dicts.
    """
    result: Dict[str, Any] = {}
    for child in element:
        if len(child):
            value: Any = element_to_dict(child)
        elif child.attrib:
            value = dict(child.attrib)
        else:
            value = (child.text or "").strip()

        if child.tag in result:
            existing = result[child.tag]
            if not isinstance(existing, list):
                result[child.tag] = [existing]
            result[child.tag].append(value)
        else:
            result[child.tag] = value
    return result


PARSERS = {
    JsonAviationParser.FORMAT: JsonAviationParser(),
    XmlAviationParser.FORMAT: XmlAviationParser(),
}


def get_parser(feed_format: str):
    """Select the parser for a configured feed format ('json' or 'xml')."""
    try:
        return PARSERS[feed_format.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown aviation feed format: {feed_format}. Available: {sorted(PARSERS)}"
        )
