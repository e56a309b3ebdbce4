from __future__ import annotations

import re

from lxml import etree

from neoscribe.common.model import Coloration, ScribeFormat, ScribePart, ScribeRow
from neoscribe.mei.elements import (
    AccidElement,
    BarLineElement,
    ClefElement,
    DotElement,
    EventInterpreter,
    IneumeElement,
    LigatureElement,
    MensurElement,
    Notation,
    NoteElement,
    RestElement,
    UneumeElement,
)
from neoscribe.scribe.clef import Clef, mei_clef_line
from neoscribe.scribe.codes import CodeTable
from neoscribe.scribe.sourcekey import SourceKey

MEI_NS = "http://www.music-encoding.org/ns/mei"
XML_ID = "{http://www.w3.org/XML/1998/namespace}id"
MEI_VERSION = "2013"

APP_ID = "xsl_scribe2neoscribexml"
APP_VERSION = "0.1"
APP_NAME = "Scribe2NeoScribeXML"

_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")


def _clean(text: str) -> str:
    return _XML_ILLEGAL.sub("", text)


def _q(tag: str) -> str:
    return f"{{{MEI_NS}}}{tag}"


def _sub(
    parent: etree._Element, tag: str, text: str | None = None, **attrib: str
) -> etree._Element:
    el = etree.SubElement(parent, _q(tag))
    for k, v in attrib.items():
        el.set(XML_ID if k == "xml_id" else k, _clean(v))
    if text is not None:
        el.text = _clean(text)
    return el


def coloration_attrs(colour: Coloration) -> dict[str, str]:
    if colour == Coloration.FULL_RED:
        return {"color": "red"}
    if colour == Coloration.VOID_RED:
        return {"color": "red", "void": "true"}
    if colour == Coloration.VOID_BLACK:
        return {"void": "true"}
    if colour == Coloration.FULL_BLUE:
        return {"color": "blue"}
    return {}


def comment_node(text: str) -> etree._Comment:
    # XML comments may not contain '--' nor end in '-'
    safe = _clean(text).replace("--", "- -")
    if safe.endswith("-"):
        safe += " "
    return etree.Comment(safe)


def folio_label(folios: str) -> str:
    return ", fols. " if "-" in folios or "/n-dash" in folios else ", fol. "


class MeiBuilder:
    """
    Builds an MEI tree for a run of Scribe parts.

    The working clef starts from each part's initial clef and is threaded
    through the rows, changing only at clef events.
    """

    def __init__(
        self,
        codes: CodeTable,
        source_key: SourceKey,
        fmt: ScribeFormat,
        encoder: str = "Unknown",
    ) -> None:
        self.source_key = source_key
        self.fmt = fmt
        self.encoder = encoder
        self.interpreter = EventInterpreter(codes, fmt)

    def build(self, parts: list[ScribePart], with_alt_id: bool = False) -> etree._ElementTree:
        mei = etree.Element(_q("mei"), nsmap={None: MEI_NS})
        mei.set("meiversion", MEI_VERSION)

        head = _sub(mei, "meiHead")
        if with_alt_id and parts:
            self._alt_id(head, parts[0])
        file_desc = _sub(head, "fileDesc")
        if parts:
            self._title_stmt(file_desc, parts[0])
        self._pub_stmt(file_desc)
        _sub(file_desc, "seriesStmt")
        if parts:
            self._source_desc(file_desc, parts[0])
        self._encoding_desc(head)
        work_desc = _sub(head, "workDesc")
        _sub(work_desc, "work")
        if parts:
            self._classification(work_desc, parts[0])

        music = _sub(mei, "music")
        score = _sub(_sub(music, "mdiv"), "score")
        staff_grp = _sub(_sub(score, "scoreDef"), "staffGrp", xml_id="all")
        for i, part in enumerate(parts, start=1):
            section = _sub(score, "section")
            self._staff(staff_grp, section, part, i)

        return etree.ElementTree(mei)

    # --- header ---------------------------------------------------------------
    def _alt_id(self, head: etree._Element, part: ScribePart) -> None:
        if self.fmt == ScribeFormat.TRECENTO:
            _sub(head, "altId", part.rep_num, type="repnum")
        else:
            _sub(head, "altId", str(part.cao_num), type="cao")

    def _title_stmt(self, file_desc: etree._Element, part: ScribePart) -> None:
        title_stmt = _sub(file_desc, "titleStmt")
        _sub(title_stmt, "title", part.title)
        resp = _sub(title_stmt, "respStmt")
        _sub(resp, "persName", part.composer, role="creator")
        _sub(resp, "persName", self.encoder, role="encoder")

    def _pub_stmt(self, file_desc: etree._Element) -> None:
        pub = _sub(file_desc, "pubStmt")
        _sub(pub, "respStmt", "http://www.lib.latrobe.edu.au/MMDB/")
        _sub(_sub(pub, "publisher"), "corpName", "Scribe Software")
        _sub(pub, "date", "1984-2014")
        _sub(_sub(pub, "availability"), "useRestrict", "©1984–2014, Scribe Software")

    def _source_desc(self, file_desc: etree._Element, part: ScribePart) -> None:
        source = _sub(_sub(file_desc, "sourceDesc"), "source", n=part.abbrev_ms, label="manuscript")
        _sub(_sub(source, "titleStmt"), "title", part.title)

        known = part.abbrev_ms in self.source_key
        item = _sub(_sub(source, "itemList"), "item", type="manuscript")
        if known:
            item.text = (
                self.source_key.source_name(part.abbrev_ms) + folio_label(part.folios) + part.folios
            )

        resp = _sub(source, "respStmt")
        _sub(resp, "persName", part.composer, role="composer")
        _sub(resp, "persName", "TBC", role="poet")
        _sub(resp, "persName", "TBC", role="dedicatee")

        phys_loc = _sub(source, "physLoc")
        if known:
            repo = _sub(phys_loc, "repository")
            _sub(repo, "abbr", self.source_key.rism_name(part.abbrev_ms), label="RISM siglum")
            _sub(repo, "expan", self.source_key.source_name(part.abbrev_ms), label="library")

    def _encoding_desc(self, head: etree._Element) -> None:
        app_info = _sub(_sub(head, "encodingDesc"), "appInfo")
        _sub(app_info, "application", APP_NAME, xml_id=APP_ID, version=APP_VERSION)

    def _classification(self, work_desc: etree._Element, part: ScribePart) -> None:
        terms = _sub(_sub(work_desc, "classification"), "termList", classcode="genre")
        _sub(terms, "genre", part.genre)

    # --- music ----------------------------------------------------------------
    def _staff(
        self, staff_grp: etree._Element, section: etree._Element, part: ScribePart, index: int
    ) -> None:
        # staffDef and staff pair up through n; xml:id values stay unique
        n = str(index)
        initial = part.initial_staff
        staff_def = _sub(
            staff_grp,
            "staffDef",
            xml_id=f"sd{index}",
            n=n,
            lines=str(initial.staff_lines),
            label=part.voice_type.label,
        )
        _sub(staff_def, "clef", line=str(mei_clef_line(initial.clef_line)), shape=initial.clef)

        staff = _sub(section, "staff", xml_id=f"s{index}", n=n, source=part.abbrev_ms)
        _sub(staff, "pb", n=part.folios)
        _sub(staff, "sb", n="0")

        clef = Clef(initial.clef, initial.clef_line)
        for row in part.rows:
            clef = self._row(staff, row, clef)

    def _row(self, staff: etree._Element, row: ScribeRow, clef: Clef) -> Clef:
        if row.is_comment:
            staff.append(comment_node(row.comment))
            return clef

        syllable = _sub(staff, "syllable")
        if row.syllable:
            _sub(syllable, "syl", row.syllable)
        for event in row.events:
            elements, clef = self.interpreter.interpret(event, clef)
            for el in elements:
                self._emit(syllable, el)
        return clef

    def _emit(self, parent: etree._Element, el: Notation) -> None:
        if isinstance(el, NoteElement):
            self._note(parent, el)
        elif isinstance(el, UneumeElement):
            neume = _sub(parent, "uneume", name=el.name)
            for n in el.notes:
                self._note(neume, n)
        elif isinstance(el, IneumeElement):
            ineume = _sub(parent, "ineume")
            for u in el.uneumes:
                self._emit(ineume, u)
        elif isinstance(el, LigatureElement):
            lig = _sub(parent, "ligature", name=el.name, **coloration_attrs(el.coloration))
            for n in el.notes:
                self._note(lig, n)
        elif isinstance(el, RestElement):
            rest = _sub(parent, "rest")
            if el.type:
                rest.set("type", el.type)
            if el.ploc is not None and el.oloc is not None:
                rest.set("ploc", el.ploc)
                rest.set("oloc", str(el.oloc))
        elif isinstance(el, DotElement):
            dot = _sub(parent, "dot", ploc=el.ploc, oloc=str(el.oloc))
            if el.vo is not None:
                dot.set("vo", el.vo)
        elif isinstance(el, MensurElement):
            mensur = _sub(parent, "mensur")
            if el.sign:
                mensur.set("sign", el.sign)
            if el.dot:
                mensur.set("dot", "true")
        elif isinstance(el, BarLineElement):
            bar = _sub(parent, "barLine")
            if el.rend:
                bar.set("rend", el.rend)
            if el.barplace:
                bar.set("barplace", el.barplace)
        elif isinstance(el, ClefElement):
            _sub(parent, "clef", line=str(el.line), shape=el.shape)
        elif isinstance(el, AccidElement):
            accid = _sub(parent, "accid", accidental=el.accidental)
            if el.ploc is not None and el.oloc is not None:
                accid.set("ploc", el.ploc)
                accid.set("oloc", str(el.oloc))

    def _note(self, parent: etree._Element, n: NoteElement) -> None:
        note = _sub(parent, "note")
        if n.dur:
            note.set("dur", n.dur)
        note.set("pname", n.pname)
        note.set("oct", str(n.octave))
        note.set("loc", str(n.loc))
        for k, v in coloration_attrs(n.coloration).items():
            note.set(k, v)
