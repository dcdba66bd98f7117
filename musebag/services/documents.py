"""
Query documents: RUCoD query description and RWML real-world context.

Responsibility: Typed builders for the documents submitted to the query formulator
and their XML rendering. Business logic fills the records; render() produces the
wire format. All text and attribute values are XML-escaped.
"""

from dataclasses import dataclass, field
from xml.sax.saxutils import escape, quoteattr

RUCOD_NS = "http://www.isearch-project.eu/isearch/RUCoD"
GML_NS = "http://www.opengis.net/gml"
XSD_NS = "http://www.w3.org/2001/XMLSchema"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

# Radius (metres) of the circle around a query position
LOCATION_RADIUS_M = 10


def _text(value: object) -> str:
    return escape(str(value))


def _attr(value: object) -> str:
    return quoteattr(str(value))


@dataclass
class Header:
    """RUCoD header with the query name, session id and creator."""

    name: str
    session_id: str
    creator: str

    def render_start(self) -> str:
        return (
            "<Header>"
            "<ContentObjectType>Query</ContentObjectType>"
            f'<ContentObjectName xml:lang="en-US">{_text(self.name)}</ContentObjectName>'
            f"<ContentObjectID>{_text(self.session_id)}</ContentObjectID>"
            "<ContentObjectCreationInformation>"
            f"<Creator><Name>{_text(self.creator)}</Name></Creator>"
            "</ContentObjectCreationInformation>"
        )


@dataclass
class TextContent:
    """Free text query item."""

    text: str

    def render(self) -> str:
        return f'<MultimediaContent type="Text"><FreeText>{_text(self.text)}</FreeText></MultimediaContent>'


@dataclass
class MediaContent:
    """Media query item referenced by its distributed path."""

    type: str
    real_type: str
    name: str
    uri: str

    def render(self) -> str:
        return (
            f"<MultimediaContent type={_attr(self.type)}>"
            f"<MediaName>{_text(self.name)}</MediaName>"
            f'<MetaTag name="TypeTag" type="xsd:string">{_text(self.real_type)}</MetaTag>'
            f"<MediaLocator><MediaUri>{_text(self.uri)}</MediaUri></MediaLocator>"
            "</MultimediaContent>"
        )


@dataclass
class EmotionEntry:
    """Emotion name with its intensity."""

    name: str
    intensity: float | str

    def render(self) -> str:
        return (
            "<UserInfo>"
            "<UserInfoName>Emotion</UserInfoName>"
            f"<emotion><category name={_attr(self.name)} intensity={_attr(self.intensity)} set=\"everydayEmotions\"/></emotion>"
            "</UserInfo>"
        )


@dataclass
class QueryDocument:
    """RUCoD query: header, one content entry per query item, tags, optional emotion."""

    header: Header
    contents: list[TextContent | MediaContent] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    emotion: EmotionEntry | None = None

    @property
    def rwml_uri(self) -> str:
        return f"{self.header.session_id}.rwml"

    def render(self) -> str:
        tags = "".join(
            f'<MetaTag name="TagRecommendation" type="xsd:string">{_text(tag)}</MetaTag>' for tag in self.tags
        )
        return (
            '<?xml version="1.0" encoding="UTF-8"?>'
            f'<RUCoD xmlns="{RUCOD_NS}" xmlns:gml="{GML_NS}" xmlns:xsd="{XSD_NS}" xmlns:xsi="{XSI_NS}">'
            + self.header.render_start()
            + f"<Tags>{tags}</Tags>"
            "<ContentObjectTypes>"
            + "".join(content.render() for content in self.contents)
            + f'<RealWorldInfo><MetadataUri filetype="rwml">{_text(self.rwml_uri)}</MetadataUri></RealWorldInfo>'
            + (self.emotion.render() if self.emotion else "")
            + "</ContentObjectTypes>"
            "</Header>"
            "</RUCoD>"
        )


@dataclass
class LocationFragment:
    """RWML location as a space separated position."""

    position: str

    def render(self) -> str:
        return (
            '<Location type="gml">'
            '<gml:CircleByCenterPoint numArc="1">'
            f"<gml:pos>{_text(self.position)}</gml:pos>"
            f'<gml:radius uom="M">{LOCATION_RADIUS_M}</gml:radius>'
            "</gml:CircleByCenterPoint>"
            "</Location>"
        )


@dataclass
class WeatherFragment:
    """RWML weather observation for the query time and place."""

    condition: str
    temperature: float | str
    wind: float | str
    humidity: float | str

    def render(self) -> str:
        return (
            "<Weather>"
            f"<Condition>{_text(self.condition)}</Condition>"
            f"<Temperature>{_text(self.temperature)}</Temperature>"
            f"<WindSpeed>{_text(self.wind)}</WindSpeed>"
            f"<Humidity>{_text(self.humidity)}</Humidity>"
            "</Weather>"
        )


@dataclass
class RealWorldDocument:
    """RWML context slice: timestamp plus optional location and weather."""

    datetime: str
    location: LocationFragment | None = None
    weather: WeatherFragment | None = None

    def render(self) -> str:
        return (
            "<RWML>"
            "<ContextSlice>"
            f"<DateTime><Date>{_text(self.datetime)}</Date></DateTime>"
            + (self.location.render() if self.location else "")
            + (self.weather.render() if self.weather else "")
            + "</ContextSlice>"
            "</RWML>"
        )
