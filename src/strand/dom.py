"""DOM shorthand namespace.

`dom.div(props, *children)` is the same request as `h("div", props, *children)`.
Usable as a whole module (`from strand import dom`) or per tag
(`from strand.dom import div, span`). Tags that clash with Python keywords
or builtins carry a trailing underscore (`del_`, `map_`, `object_`).
"""

from __future__ import annotations

import sys

from strand.element import TagMacro
from strand.py_module import PyModule

a = TagMacro("a")
abbr = TagMacro("abbr")
address = TagMacro("address")
article = TagMacro("article")
aside = TagMacro("aside")
audio = TagMacro("audio")
b = TagMacro("b")
bdi = TagMacro("bdi")
bdo = TagMacro("bdo")
blockquote = TagMacro("blockquote")
body = TagMacro("body")
button = TagMacro("button")
canvas = TagMacro("canvas")
caption = TagMacro("caption")
cite = TagMacro("cite")
code = TagMacro("code")
colgroup = TagMacro("colgroup")
data = TagMacro("data")
datalist = TagMacro("datalist")
dd = TagMacro("dd")
del_ = TagMacro("del")
details = TagMacro("details")
dfn = TagMacro("dfn")
dialog = TagMacro("dialog")
div = TagMacro("div")
dl = TagMacro("dl")
dt = TagMacro("dt")
em = TagMacro("em")
fieldset = TagMacro("fieldset")
figcaption = TagMacro("figcaption")
figure = TagMacro("figure")
footer = TagMacro("footer")
form = TagMacro("form")
h1 = TagMacro("h1")
h2 = TagMacro("h2")
h3 = TagMacro("h3")
h4 = TagMacro("h4")
h5 = TagMacro("h5")
h6 = TagMacro("h6")
head = TagMacro("head")
header = TagMacro("header")
hgroup = TagMacro("hgroup")
html = TagMacro("html")
i = TagMacro("i")
iframe = TagMacro("iframe")
ins = TagMacro("ins")
kbd = TagMacro("kbd")
label = TagMacro("label")
legend = TagMacro("legend")
li = TagMacro("li")
main = TagMacro("main")
map_ = TagMacro("map")
mark = TagMacro("mark")
menu = TagMacro("menu")
meter = TagMacro("meter")
nav = TagMacro("nav")
noscript = TagMacro("noscript")
object_ = TagMacro("object")
ol = TagMacro("ol")
optgroup = TagMacro("optgroup")
option = TagMacro("option")
output = TagMacro("output")
p = TagMacro("p")
picture = TagMacro("picture")
pre = TagMacro("pre")
progress = TagMacro("progress")
q = TagMacro("q")
rp = TagMacro("rp")
rt = TagMacro("rt")
ruby = TagMacro("ruby")
s = TagMacro("s")
samp = TagMacro("samp")
script = TagMacro("script")
section = TagMacro("section")
select = TagMacro("select")
small = TagMacro("small")
span = TagMacro("span")
strong = TagMacro("strong")
style = TagMacro("style")
sub = TagMacro("sub")
summary = TagMacro("summary")
sup = TagMacro("sup")
table = TagMacro("table")
tbody = TagMacro("tbody")
td = TagMacro("td")
template = TagMacro("template")
textarea = TagMacro("textarea")
tfoot = TagMacro("tfoot")
th = TagMacro("th")
thead = TagMacro("thead")
time = TagMacro("time")
title = TagMacro("title")
tr = TagMacro("tr")
u = TagMacro("u")
ul = TagMacro("ul")
var = TagMacro("var")
video = TagMacro("video")

# Void elements
area = TagMacro("area")
base = TagMacro("base")
br = TagMacro("br")
col = TagMacro("col")
embed = TagMacro("embed")
hr = TagMacro("hr")
img = TagMacro("img")
input = TagMacro("input")
link = TagMacro("link")
meta = TagMacro("meta")
param = TagMacro("param")
source = TagMacro("source")
track = TagMacro("track")
wbr = TagMacro("wbr")

# SVG
svg = TagMacro("svg")
circle = TagMacro("circle")
ellipse = TagMacro("ellipse")
g = TagMacro("g")
line = TagMacro("line")
path = TagMacro("path")
polygon = TagMacro("polygon")
polyline = TagMacro("polyline")
rect = TagMacro("rect")
text = TagMacro("text")
tspan = TagMacro("tspan")
defs = TagMacro("defs")
clipPath = TagMacro("clipPath")
mask = TagMacro("mask")
pattern = TagMacro("pattern")
use = TagMacro("use")

TAGS: dict[str, TagMacro] = {
	name: value for name, value in list(globals().items()) if isinstance(value, TagMacro)
}

PyModule.register(sys.modules[__name__], TAGS)
