"""Sample rich-markup fragments for testing.

These fragments mirror what the notes database stores in its content column:
sibling flow-document elements without a common root, attributes carrying all
presentational information.
"""

HEADING_PARAGRAPH = '<Paragraph FontSize="23"><Run Text="Title"/></Paragraph>'

CODE_PARAGRAPH = '<Paragraph><Run FontFamily="Consolas" Text="x=1"/></Paragraph>'

BOLD_ITALIC_PARAGRAPH = (
    '<Paragraph><Run FontItalic="true" FontBold="true" Text="text"/></Paragraph>'
)

MIXED_NOTE = """<?xml version="1.0" encoding="utf-8"?>
<Paragraph FontSize="23"><Run Text="Shopping"/></Paragraph>
<Paragraph><Run Text="Buy "/><Run FontBold="true" Text="milk"/><Run Text=" today."/></Paragraph>
<Paragraph FontFamily="Courier New"><Run Text="def add(a, b):"/></Paragraph>
<Paragraph FontFamily="Courier New"><Run Text="    return a + b"/></Paragraph>
<Paragraph><Run Text="Done."/></Paragraph>"""

INDENTED_PARAGRAPH = '<Paragraph Margin="72,0,0,0"><Run Text="Nested thought"/></Paragraph>'

LINK_PARAGRAPH = (
    '<Paragraph><Run Text="See "/>'
    '<UriLink Uri="https://example.com/docs"><Run Text="the docs"/></UriLink>'
    '</Paragraph>'
)

BULLET_LIST = """<List>
<ListItem><Paragraph><Run Text="First"/></Paragraph></ListItem>
<ListItem><Paragraph><Run Text="Second"/></Paragraph>
<List><ListItem><Paragraph><Run Text="Inner"/></Paragraph></ListItem></List>
</ListItem>
</List>"""

ORDERED_LIST = """<List Kind="Decimal">
<ListItem><Paragraph><Run Text="One"/></Paragraph></ListItem>
<ListItem><Paragraph><Run Text="Two"/></Paragraph></ListItem>
</List>"""

TABLE = """<Table><TableRowGroup>
<TableRow><TableCell><Paragraph><Run Text="Name"/></Paragraph></TableCell><TableCell><Paragraph><Run Text="Qty"/></Paragraph></TableCell></TableRow>
<TableRow><TableCell><Paragraph><Run Text="a|b"/></Paragraph></TableCell><TableCell><Paragraph><Run Text="2"/></Paragraph></TableCell></TableRow>
</TableRowGroup></Table>"""

THREE_IMAGES = """<Paragraph><Run Text="Before"/></Paragraph>
<Paragraph><UriMedia Uri="https://cdn.logoscdn.com/a.png"/></Paragraph>
<Paragraph><UriMedia Uri="https://cdn.logoscdn.com/broken.png"/></Paragraph>
<Paragraph><UriMedia Uri="https://cdn.logoscdn.com/c.png"/></Paragraph>
<Paragraph><Run Text="After"/></Paragraph>"""

DUPLICATE_IMAGES = """<Paragraph><UriMedia Uri="https://cdn.logoscdn.com/same.png"/></Paragraph>
<Paragraph><Run Text="Between"/></Paragraph>
<Paragraph><UriMedia Uri="https://cdn.logoscdn.com/same.png"/></Paragraph>"""

MALFORMED_NOTE = (
    '<Paragraph><Run Text="Recovered line"/><Run Text="1. First step"/>'
    '<Paragraph><Run Text="unclosed'
)

UNKNOWN_ELEMENT_NOTE = (
    '<Paragraph><Sticker Name="star"><Run Text="shiny"/></Sticker></Paragraph>'
)
