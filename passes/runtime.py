"""Companion runtime script: restores placeholders in the browser.

The script is generated from the kind table in ``passes.contract``, so the
class names and payload attributes it looks for are exactly the ones the
facade pass writes.  It is appended once per document, at the end of
``<body>`` (or of the fragment), and only when the output actually contains
a placeholder.

Restore triggers:

* click / Enter / Space on click-to-load kinds (YouTube and social embeds),
* entering the viewport for ``visible`` kinds (``<video>`` and background
  images), or immediately when ``IntersectionObserver`` is unavailable.

Social payloads need their platform loader; it is loaded at most once per
page (looked up by its well-known element id) and the provider's re-scan
hook is called once it is available.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup
from bs4.element import Script, Tag

from parsing.document import content_root
from parsing.filtering import FACADE_ATTR
from passes.contract import (
    ALL_KINDS,
    BACKGROUND,
    BACKGROUND_SRC_ATTR,
    INSTAGRAM,
    LAZY_KIND_ATTR,
    ORIGINAL_SRC_ATTR,
    RUNTIME_SCRIPT_ID,
    RUNTIME_VERSION,
    TWEET,
    VIDEO_ID_ATTR,
    YOUTUBE,
    placeholder_selector,
)

if TYPE_CHECKING:
    from pipeline.context import PassContext

logger = logging.getLogger("leanpost")

# JS function bodies run after a loader is ready; ``n`` is the restored node.
RESCAN_HOOKS = {
    TWEET.name: "window.twttr&&twttr.widgets&&twttr.widgets.load(n.parentNode)",
    INSTAGRAM.name: "window.instgrm&&instgrm.Embeds.process()",
}

_YOUTUBE_ALLOW = (
    "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture"
)

_RUNTIME_BODY = """\
(function(){"use strict";
var K=%(kinds)s,H={%(hooks)s};
function kindOf(el){for(var i=0;i<K.length;i++){if(el.classList.contains(K[i].c))return K[i];}return null;}
function loadOnce(id,src,done){var s=document.getElementById(id);if(s){if(done)done();return;}
s=document.createElement("script");s.id=id;s.src=src;s.async=true;if(done)s.onload=done;
(document.head||document.body).appendChild(s);}
function decode(b){var bin=atob(b),a=new Uint8Array(bin.length);for(var i=0;i<bin.length;i++)a[i]=bin.charCodeAt(i);
return new TextDecoder("utf-8").decode(a);}
function settle(el,k){el.classList.remove(k.c);el.removeAttribute("%(facade)s");el.removeAttribute("%(lazy)s");
el.removeAttribute("role");el.removeAttribute("tabindex");}
function restore(el){var k=kindOf(el);if(!k)return;
if(k.n==="%(youtube)s"){var src=el.getAttribute("%(original)s")||"https://www.youtube.com/embed/"+el.getAttribute("%(video_id)s");
var f=document.createElement("iframe");f.src=src+(src.indexOf("?")<0?"?":"&")+"autoplay=1";
f.setAttribute("allow","%(allow)s");f.setAttribute("allowfullscreen","");
f.style.cssText="position:absolute;top:0;left:0;width:100%%;height:100%%;border:0;";
el.innerHTML="";el.appendChild(f);settle(el,k);return;}
if(k.n==="%(background)s"){var u=el.getAttribute("%(bg_src)s");
if(u)el.style.backgroundImage='url("'+u.replace(/"/g,'\\\\"')+'")';el.removeAttribute("%(bg_src)s");settle(el,k);return;}
var p=el.getAttribute(k.p);if(!p||!el.parentNode)return;
try{var w=document.createElement("div");w.innerHTML=decode(p);var n=w.firstElementChild;if(!n)return;
el.parentNode.replaceChild(n,el);
if(k.s)loadOnce(k.l,k.s,function(){if(H[k.n])H[k.n](n);});}
catch(e){if(window.console)console.error("leanpost: could not restore "+k.n,e);}}
var clickSel=K.filter(function(k){return k.t==="click";}).map(function(k){return "."+k.c;}).join(",");
var seenSel=K.filter(function(k){return k.t==="visible";}).map(function(k){return "."+k.c;}).join(",");
document.addEventListener("click",function(e){var el=e.target.closest&&e.target.closest(clickSel);if(el){e.preventDefault();restore(el);}},false);
document.addEventListener("keydown",function(e){if(e.key!=="Enter"&&e.key!==" ")return;
var el=e.target.closest&&e.target.closest(clickSel);if(el){e.preventDefault();restore(el);}},false);
function watch(){var els=document.querySelectorAll(seenSel);if(!els.length)return;
if(!("IntersectionObserver" in window)){for(var i=0;i<els.length;i++)restore(els[i]);return;}
var io=new IntersectionObserver(function(entries){entries.forEach(function(en){if(en.isIntersecting){io.unobserve(en.target);restore(en.target);}});},{rootMargin:"200px 0px"});
for(var j=0;j<els.length;j++)io.observe(els[j]);}
if(document.readyState==="loading")document.addEventListener("DOMContentLoaded",watch);else watch();
})();"""


def kind_table() -> list[dict[str, str | None]]:
    """The kind table as embedded in the script (short keys keep it small)."""
    return [
        {
            "n": kind.name,
            "c": kind.css_class,
            "p": kind.payload_attr,
            "l": kind.loader_id,
            "s": kind.loader_src,
            "t": kind.trigger,
        }
        for kind in ALL_KINDS
    ]


def build_runtime_source() -> str:
    """Render the runtime JavaScript for the current contract."""
    hooks = ",".join(
        f"{json.dumps(name)}:function(n){{{body};}}" for name, body in RESCAN_HOOKS.items()
    )
    return _RUNTIME_BODY % {
        "kinds": json.dumps(kind_table(), separators=(",", ":")),
        "hooks": hooks,
        "facade": FACADE_ATTR,
        "lazy": LAZY_KIND_ATTR,
        "youtube": YOUTUBE.name,
        "background": BACKGROUND.name,
        "original": ORIGINAL_SRC_ATTR,
        "video_id": VIDEO_ID_ATTR,
        "bg_src": BACKGROUND_SRC_ATTR,
        "allow": _YOUTUBE_ALLOW,
    }


def has_placeholders(soup: BeautifulSoup) -> bool:
    return soup.select_one(placeholder_selector()) is not None


def build_runtime_tag(soup: BeautifulSoup) -> Tag:
    script = soup.new_tag("script")
    script["id"] = RUNTIME_SCRIPT_ID
    script["data-version"] = RUNTIME_VERSION
    script.append(Script(build_runtime_source()))
    return script


def inject_runtime(soup: BeautifulSoup) -> bool:
    """Append the runtime once if the tree holds placeholders; True if appended."""
    if not has_placeholders(soup):
        return False
    if soup.find("script", id=RUNTIME_SCRIPT_ID) is not None:
        return False
    content_root(soup).append(build_runtime_tag(soup))
    return True


def run(ctx: PassContext) -> None:
    if inject_runtime(ctx.soup):
        ctx.record("Added the lazy-load runtime script to restore placeholders on demand.")
        logger.debug("runtime injected", extra={"step": "runtime", "version": RUNTIME_VERSION})
