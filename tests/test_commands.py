from __future__ import annotations

import io
import json
from datetime import date
from pathlib import Path

import httpx
import pytest

from vimmagazine.commands import (
    cmd_generate,
    cmd_githubissuelist,
    cmd_patchlist,
    cmd_scriptjson,
    cmd_scriptlist,
    cmd_scriptranking,
)
from vimmagazine.core.config import Settings
from vimmagazine.core.http import FetchError, HttpFetcher

README = "\n".join(
    [
        "Patches for Vim - Vi IMproved 8.0",
        "",
        "  SIZE  NAME     FIXES",
        "  1000  8.0.0499  old patch",
        "  1200  8.0.0500  last seen patch",
        "  1300  8.0.0600  new *patch*",
    ]
)

LISTING = "\n".join(
    [
        '<td class="rowodd"><a href="script.php?script_id=150">old.vim</a></td>',
        '<td class="rowodd">utility</td>',
        '<td class="rowodd">10</td>',
        '<td class="rowodd">90</td>',
        '<td class="rowodd">Old script</td>',
        '<td class="roweven"><a href="script.php?script_id=201">caf\xe9.vim</a></td>',
        '<td class="roweven">utility</td>',
        '<td class="roweven">1</td>',
        '<td class="roweven">12</td>',
        '<td class="roweven">New script</td>',
    ]
)

TAGS = [
    {"ref": "refs/tags/v8.0.0600", "object": {"sha": "c0ffee"}},
    {"ref": "refs/tags/v8.0.0500", "object": {"sha": "beef"}},
]

OPEN_ISSUES = [{"number": n, "title": f"open {n}", "state": "open"} for n in (10, 20, 30, 51)]
CLOSED_ISSUES = [{"number": n, "title": f"closed {n}", "state": "closed"} for n in range(1, 8)]

STATE = {
    "updated": "2017-04-01",
    "vim": {"version": "8.0.0500"},
    "script": {
        "script_id": "200",
        "state": [{"script_id": "150", "rating": 10, "downloads": 80}],
    },
    "vim-jp/issues": {"opencount": 3, "closedcount": 7, "number": 50},
}


def with_urls(items: list[dict]) -> list[dict]:
    return [
        {**item, "html_url": f"https://github.com/vim-jp/issues/issues/{item['number']}"}
        for item in items
    ]


def handler(request: httpx.Request) -> httpx.Response:
    host, path = request.url.host, request.url.path
    if host == "ftp.vim.org" and path == "/pub/vim/patches/8.0/README":
        return httpx.Response(200, content=README.encode("utf-8"))
    if host == "vim.sourceforge.io" and path == "/scripts/script_search_results.php":
        return httpx.Response(200, content=LISTING.encode("iso-8859-1"))
    if host == "api.github.com" and path == "/repos/vim/vim/git/refs/tags":
        return httpx.Response(200, json=TAGS)
    if host == "api.github.com" and path == "/repos/vim-jp/issues/issues":
        state = request.url.params["state"]
        items = OPEN_ISSUES if state == "open" else CLOSED_ISSUES
        return httpx.Response(200, json=with_urls(items))
    return httpx.Response(404)


@pytest.fixture
def fetcher() -> HttpFetcher:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpFetcher(Settings(attempts=1), client=client, sleep=lambda _: None)


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    path = tmp_path / "state.json"
    path.write_text(json.dumps(STATE, indent=2), encoding="utf-8")
    return path


EXPECTED_DIGEST = "\n".join(
    [
        "## リリース情報",
        "",
        "- [8.0.0600 : new &#x2a;patch&#x2a;](https://github.com/vim/vim/commit/c0ffee)",
        "",
        "## 新着スクリプト",
        "",
        "- [café.vim : New script](https://vim.sourceforge.io/scripts/script.php?script_id=201)",
        "",
        "## 月間ダウンロードランキング",
        "",
        "1. [café.vim : New script](https://vim.sourceforge.io/scripts/script.php?script_id=201) (12)",
        "2. [old.vim : Old script](https://vim.sourceforge.io/scripts/script.php?script_id=150) (10)",
        "",
        "## vim-jp/issues issues",
        "",
        "Open : 4 (+1) | Closed : 7 (+0)",
        "",
        "- [Issue #51 : open 51](https://github.com/vim-jp/issues/issues/51)",
        "",
        "",
    ]
)


def test_generate_without_update_leaves_state_untouched(
    fetcher: HttpFetcher, state_file: Path
) -> None:
    before = state_file.read_bytes()
    out = io.StringIO()
    updated = cmd_generate(fetcher, out, state_file, today=date(2017, 5, 1))

    assert out.getvalue() == EXPECTED_DIGEST
    assert state_file.read_bytes() == before
    assert str(updated.vim_version) == "8.0.0600"
    assert updated.last_script_id == 201
    assert updated.issues.last_number == 51


def test_generate_with_update_persists_new_maxima(fetcher: HttpFetcher, state_file: Path) -> None:
    out = io.StringIO()
    cmd_generate(fetcher, out, state_file, update=True, today=date(2017, 5, 1))

    saved = json.loads(state_file.read_text(encoding="utf-8"))
    assert saved == {
        "updated": "2017-05-01",
        "vim": {"version": "8.0.0600"},
        "script": {
            "script_id": "201",
            "state": [
                {"script_id": "150", "rating": 10, "downloads": 90},
                {"script_id": "201", "rating": 1, "downloads": 12},
            ],
        },
        "vim-jp/issues": {"opencount": 4, "closedcount": 7, "number": 51},
    }

    rerun = io.StringIO()
    cmd_generate(fetcher, rerun, state_file, today=date(2017, 5, 2))
    assert "Open : 4 (+0) | Closed : 7 (+0)" in rerun.getvalue()
    assert "Issue #" not in rerun.getvalue()


def test_generate_fails_without_partial_report(state_file: Path) -> None:
    def broken(request: httpx.Request) -> httpx.Response:
        if request.url.host == "vim.sourceforge.io":
            return httpx.Response(500)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(broken))
    fetcher = HttpFetcher(Settings(attempts=2), client=client, sleep=lambda _: None)
    before = state_file.read_bytes()
    out = io.StringIO()

    with pytest.raises(FetchError) as excinfo:
        cmd_generate(fetcher, out, state_file, update=True)
    assert excinfo.value.source == "scripts"
    assert out.getvalue() == ""
    assert state_file.read_bytes() == before


def test_list_commands(fetcher: HttpFetcher) -> None:
    out = io.StringIO()
    cmd_patchlist(fetcher, out)
    assert out.getvalue().splitlines() == [
        "- [8.0.0499 : old patch]()",
        "- [8.0.0500 : last seen patch](https://github.com/vim/vim/commit/beef)",
        "- [8.0.0600 : new &#x2a;patch&#x2a;](https://github.com/vim/vim/commit/c0ffee)",
    ]

    out = io.StringIO()
    cmd_scriptlist(fetcher, out)
    assert out.getvalue().splitlines()[0] == (
        "- [old.vim : Old script](https://vim.sourceforge.io/scripts/script.php?script_id=150)"
    )

    out = io.StringIO()
    cmd_githubissuelist(fetcher, out, "vim-jp", "issues")
    lines = out.getvalue().splitlines()
    assert len(lines) == 11
    assert lines[0] == "- [Issue #1 : closed 1](https://github.com/vim-jp/issues/issues/1)"


def test_scriptjson_feeds_scriptranking(fetcher: HttpFetcher, tmp_path: Path) -> None:
    out = io.StringIO()
    cmd_scriptjson(fetcher, out)
    current = json.loads(out.getvalue())
    assert current == [
        {"script_id": "150", "rating": 10, "downloads": 90},
        {"script_id": "201", "rating": 1, "downloads": 12},
    ]

    old_file = tmp_path / "old.json"
    old_file.write_text(json.dumps([{"script_id": "150", "rating": 9, "downloads": 70}]))
    cur_file = tmp_path / "cur.json"
    cur_file.write_text(out.getvalue())

    ranking = io.StringIO()
    cmd_scriptranking(ranking, old_file, cur_file)
    assert ranking.getvalue().splitlines() == [
        "1. [ : ](https://vim.sourceforge.io/scripts/script.php?script_id=150) (20)",
        "2. [ : ](https://vim.sourceforge.io/scripts/script.php?script_id=201) (12)",
    ]
