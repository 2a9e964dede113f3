"""Marker export for video and motion editors.

Three targets are supported:

- ``premiere_xml``: Final Cut Pro 7 XML (xmeml v4), which Premiere Pro
  imports as a new sequence. Marker positions are frames at
  ``settings.export_timebase`` fps.
- ``fcpxml``: Final Cut Pro X XML with positions in seconds.
- ``aftereffects_jsx``: an ExtendScript file that adds one layer marker per
  entry to the selected layer.
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Sequence

from beatmarker.analysis.models import Marker
from beatmarker.config import settings

APP_NAME = "BeatMarker"


class ExportFormat(str, Enum):
    PREMIERE_XML = "premiere_xml"
    FINAL_CUT_XML = "fcpxml"
    AFTER_EFFECTS_JSX = "aftereffects_jsx"


@dataclass
class ExportArtifact:
    """A rendered export, ready to be written or downloaded."""
    filename: str
    media_type: str
    content: str


def _stem(source_name: str) -> str:
    stem = PurePath(source_name or "audio").name.split(".")[0]
    return stem or "audio"


def _xml_text(root: ET.Element, doctype: str | None = None) -> str:
    ET.indent(root, space="  ")
    header = '<?xml version="1.0" encoding="UTF-8"?>\n'
    if doctype:
        header += doctype + "\n"
    return header + ET.tostring(root, encoding="unicode") + "\n"


def to_premiere_xml(markers: Sequence[Marker], source_name: str, timebase: int | None = None) -> str:
    if timebase is None:
        timebase = settings.export_timebase
    root = ET.Element("xmeml", version="4")
    project = ET.SubElement(root, "project")
    ET.SubElement(project, "name").text = f"{APP_NAME} Export"
    sequence = ET.SubElement(ET.SubElement(project, "children"), "sequence")
    ET.SubElement(sequence, "name").text = f"{_stem(source_name)}_Sequence"
    rate = ET.SubElement(sequence, "rate")
    ET.SubElement(rate, "timebase").text = str(timebase)
    ET.SubElement(rate, "ntsc").text = "FALSE"
    media = ET.SubElement(sequence, "media")
    ET.SubElement(ET.SubElement(media, "video"), "track")

    for m in markers:
        frame = int(round(m.time * timebase))
        el = ET.SubElement(sequence, "marker")
        ET.SubElement(el, "name").text = m.label
        ET.SubElement(el, "comment").text = f"{m.time:.3f}s {m.color}"
        ET.SubElement(el, "in").text = str(frame)
        ET.SubElement(el, "out").text = str(frame)
    return _xml_text(root, doctype="<!DOCTYPE xmeml>")


def to_fcpxml(markers: Sequence[Marker], source_name: str, duration: float | None = None) -> str:
    if duration is None:
        duration = 3600.0
    end = max([duration] + [m.time for m in markers])
    root = ET.Element("fcpxml", version="1.8")
    resources = ET.SubElement(root, "resources")
    ET.SubElement(resources, "format", id="r1", name="FFVideoFormat1080p24", frameDuration="100/2400s")
    library = ET.SubElement(root, "library")
    event = ET.SubElement(library, "event", name=f"{APP_NAME} Export")
    project = ET.SubElement(event, "project", name=f"{_stem(source_name)} Markers")
    sequence = ET.SubElement(project, "sequence", format="r1", duration=f"{end:.3f}s")
    spine = ET.SubElement(sequence, "spine")
    for m in markers:
        ET.SubElement(
            spine, "marker",
            start=f"{m.time:.3f}s", duration="0s", value=m.label, note=m.color,
        )
    return _xml_text(root, doctype="<!DOCTYPE fcpxml>")


_JSX_TEMPLATE = """(function() {{
  var comp = app.project.activeItem;
  var layer = comp && comp.selectedLayers ? comp.selectedLayers[0] : null;
  if (!layer) {{ alert("Select a layer first!"); return; }}
  var markers = {payload};
  app.beginUndoGroup("Apply Beat Markers");
  for (var i = 0; i < markers.length; i++) {{
    var marker = new MarkerValue(markers[i].label);
    marker.comment = markers[i].color;
    layer.property("Marker").setValueAtTime(markers[i].time, marker);
  }}
  app.endUndoGroup();
}})();
"""


def to_after_effects_jsx(markers: Sequence[Marker]) -> str:
    payload = json.dumps(
        [{"id": m.id, "time": round(m.time, 3), "label": m.label, "color": m.color} for m in markers],
        indent=2,
    ).replace("\n", "\n  ")
    return _JSX_TEMPLATE.format(payload=payload)


def export_markers(
    markers: Sequence[Marker],
    fmt: ExportFormat | str,
    source_name: str = "audio",
    duration: float | None = None,
) -> ExportArtifact:
    """Render *markers* (already in time order) into the requested format."""
    fmt = ExportFormat(fmt)
    stem = _stem(source_name)
    if fmt is ExportFormat.PREMIERE_XML:
        return ExportArtifact(f"{stem}_markers.xml", "application/xml", to_premiere_xml(markers, source_name))
    if fmt is ExportFormat.FINAL_CUT_XML:
        return ExportArtifact(f"{stem}_markers.fcpxml", "application/xml",
                              to_fcpxml(markers, source_name, duration))
    return ExportArtifact(f"{stem}_markers.jsx", "application/javascript", to_after_effects_jsx(markers))
