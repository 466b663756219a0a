"""
GPX 1.1 writer for recorded tracks.

Serializes a TrackRecording with:
- Standard GPX 1.1 trackpoints (lat, lon, ele, time)
- Garmin TrackPointExtension for speed and course, when known
- A position-accuracy extension carrying the horizontal/vertical accuracy

Output goes to any text stream; where it ends up is the caller's decision.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import TextIO

from track_export.data_models import TrackRecording


# XML namespaces
NS_GPX = "http://www.topografix.com/GPX/1/1"
NS_GARMIN = "http://www.garmin.com/xmlschemas/TrackPointExtension/v2"
NS_ACCURACY = "urn:livemap:gpx:accuracy:v1"
NS_XSI = "http://www.w3.org/2001/XMLSchema-instance"

CREATOR = "Live Position Map"


def write_gpx(track: TrackRecording, output: TextIO) -> None:
    """
    Write a TrackRecording to GPX 1.1 format with extensions.

    Readings the platform did not report are left out rather than written
    as zero.

    Args:
        track: Recording emitted by the recorder
        output: File-like object to write to
    """
    # Register namespaces to avoid ns0/ns1 prefixes
    ET.register_namespace("", NS_GPX)
    ET.register_namespace("gpxtpx", NS_GARMIN)
    ET.register_namespace("acc", NS_ACCURACY)
    ET.register_namespace("xsi", NS_XSI)

    gpx = ET.Element(
        "{%s}gpx" % NS_GPX,
        attrib={
            "version": "1.1",
            "creator": CREATOR,
            "{%s}schemaLocation" % NS_XSI: (
                f"{NS_GPX} http://www.topografix.com/GPX/1/1/gpx.xsd "
                f"{NS_GARMIN} http://www.garmin.com/xmlschemas/TrackPointExtensionv2.xsd"
            ),
        }
    )

    # Metadata
    metadata = ET.SubElement(gpx, "{%s}metadata" % NS_GPX)
    _add_text(metadata, "name", track.name)
    if track.start_time:
        _add_text(metadata, "time", _format_time(track.start_time))

    # Track with a single segment
    trk = ET.SubElement(gpx, "{%s}trk" % NS_GPX)
    _add_text(trk, "name", track.name)
    _add_text(trk, "src", "Device geolocation")
    trkseg = ET.SubElement(trk, "{%s}trkseg" % NS_GPX)

    for sample in track.samples:
        trkpt = ET.SubElement(trkseg, "{%s}trkpt" % NS_GPX)
        trkpt.set("lat", f"{sample.latitude:.7f}")
        trkpt.set("lon", f"{sample.longitude:.7f}")

        # GPX schema order: ele before time
        if sample.altitude_m is not None:
            _add_text(trkpt, "ele", f"{sample.altitude_m:.2f}")
        _add_text(trkpt, "time", _format_time(sample.timestamp))

        extensions = ET.SubElement(trkpt, "{%s}extensions" % NS_GPX)

        if sample.speed_mps is not None or sample.heading_deg is not None:
            gpxtpx = ET.SubElement(extensions, f"{{{NS_GARMIN}}}TrackPointExtension")
            if sample.speed_mps is not None:
                speed_elem = ET.SubElement(gpxtpx, f"{{{NS_GARMIN}}}speed")
                speed_elem.text = f"{sample.speed_mps:.2f}"
            if sample.heading_deg is not None:
                course_elem = ET.SubElement(gpxtpx, f"{{{NS_GARMIN}}}course")
                course_elem.text = f"{sample.heading_deg:.1f}"

        accuracy = ET.SubElement(extensions, f"{{{NS_ACCURACY}}}Accuracy")
        horizontal = ET.SubElement(accuracy, f"{{{NS_ACCURACY}}}horizontal")
        horizontal.text = f"{sample.accuracy_m:.1f}"
        if sample.altitude_accuracy_m is not None:
            vertical = ET.SubElement(accuracy, f"{{{NS_ACCURACY}}}vertical")
            vertical.text = f"{sample.altitude_accuracy_m:.1f}"

    # Write XML with declaration
    tree = ET.ElementTree(gpx)
    output.write('<?xml version="1.0" encoding="UTF-8"?>\n')
    tree.write(output, encoding="unicode", xml_declaration=False)


def _add_text(parent: ET.Element, name: str, value: str) -> ET.Element:
    """Add a GPX namespace element with text content."""
    elem = ET.SubElement(parent, f"{{{NS_GPX}}}{name}")
    elem.text = value
    return elem


def _format_time(dt: datetime) -> str:
    """Format datetime as ISO 8601 UTC string for GPX."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
