"""Shared test fixtures for the spartanmcp test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from spartanmcp.cache import DiskCache
from spartanmcp.config import CacheSettings, Settings, WarmupSettings

if TYPE_CHECKING:
    from pathlib import Path


ACCORDION_PAGE = """
<html>
<head>
  <script>window.__NAV__ = {"BrnLeaked": {"selector": "[leaked]"}};</script>
  <style>.nav { color: red; }</style>
</head>
<body>
<nav><h2>Components</h2><a href="/components/button">Button</a></nav>
<h1>Accordion</h1>
<p>A vertically stacked set of interactive headings.</p>
<h2>Installation</h2>
<pre><code>npx nx g @spartan-ng/cli:ui accordion
ng g @spartan-ng/cli:ui accordion
npm install @spartan-ng/brain</code></pre>
<h2>Usage</h2>
<pre><code>import { Component } from '@angular/core';
import { HlmAccordionImports } from '@spartan-ng/helm/accordion';
@Component({ selector: 'accordion-preview' })
export class AccordionPreview {}</code></pre>
<h2>Brain API</h2>
<h3>BrnAccordion</h3>
<p>Selector: [brnAccordion]</p>
<h4>Inputs</h4>
<table>
  <tr><th>Prop</th><th>Type</th><th>Default</th><th>Description</th></tr>
  <tr><td>type</td><td>'single' | 'multiple'</td><td>single</td><td>Whether one or many items open.</td></tr>
  <tr><td>dir</td><td>'ltr' | 'rtl'</td><td>ltr</td><td>Reading direction.</td></tr>
</table>
<h4>Outputs</h4>
<table>
  <tr><th>Prop</th><th>Type</th><th>Description</th></tr>
  <tr><td>openedChange</td><td>boolean</td><td>Emits when the open state changes.</td></tr>
</table>
<h3>BrnAccordionItem</h3>
<p>Selector: [brnAccordionItem]</p>
<h2>Helm API</h2>
<h3>HlmAccordion</h3>
<p>Selector: [hlmAccordion]</p>
<h4>Inputs</h4>
<table>
  <tr><th>Prop</th><th>Type</th><th>Default</th><th>Description</th></tr>
  <tr><td>class</td><td>string</td><td></td><td>Extra classes.</td></tr>
</table>
<h2>On this page</h2>
<ul><li><h3>BrnFooterLink</h3></li></ul>
<footer><table><tr><th>a</th></tr><tr><td>footer</td><td>x</td><td>y</td></tr></table></footer>
</body>
</html>
"""

PLAIN_PAGE = """
<h1>Theming</h1>
<p>Spartan uses CSS variables &amp; Tailwind.</p>
<pre><code>:root {
  --background: 0 0% 100%;
  --foreground: 240 10% 3.9%;
}</code></pre>
"""


@pytest.fixture()
def accordion_page() -> str:
    return ACCORDION_PAGE


@pytest.fixture()
def plain_page() -> str:
    return PLAIN_PAGE


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing the disk cache at a temp dir, with no warm-up delay."""
    return Settings(
        cache=CacheSettings(cache_dir=str(tmp_path / "cache")),
        warmup=WarmupSettings(delay_ms=0),
    )


@pytest.fixture()
async def disk_cache(tmp_path: Path) -> DiskCache:
    cache = DiskCache(tmp_path / "cache")
    await cache.initialize()
    return cache
