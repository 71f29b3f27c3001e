"""
Jsonia runtime test configuration.

Shared fixtures build a Runtime over an in-memory Document. The resolver
has no project directory, so component lookups only see components the
test registers (or writes under tmp_path).
"""

import pytest

from jsonia.runtime import ComponentResolver, Document, Runtime

PAGE_HTML = """
<!DOCTYPE html>
<html>
<head><title>Test page</title></head>
<body>
  <div id="app">
    <ul id="list">
      <li class="item" data-id="1">One</li>
      <li class="item" data-id="2">Two</li>
    </ul>
    <p id="msg">hello</p>
  </div>
  <pre id="stateDisplay"></pre>
</body>
</html>
"""


def make_runtime(html: str | None = PAGE_HTML, **kwargs) -> Runtime:
    """Runtime over a fresh document with an empty component resolver."""
    kwargs.setdefault("resolver", ComponentResolver())
    return Runtime(Document(html), **kwargs)


@pytest.fixture
def runtime():
    return make_runtime()


@pytest.fixture
def document(runtime):
    return runtime.document
