from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from ebookconv.record import DEFAULT_CHAPTER_TITLE, build_record, to_structured_record

SAMPLE = """第一章 序言

这是一个测试电子书的开始。
本工具展示了电子书转换不需要大量资源。

第二章 正文

这里是第二章的内容。

第三章 结论

电子书转换是一个轻量级的操作。"""

FIXED = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_record_layout_and_metadata() -> None:
    record = json.loads(
        to_structured_record(SAMPLE, {"title": "测试电子书", "author": "测试作者"}, created=FIXED)
    )
    assert set(record) == {"metadata", "chapters"}
    assert record["metadata"] == {
        "title": "测试电子书",
        "author": "测试作者",
        "language": "zh-CN",
        "created": "2024-05-01T12:00:00.000Z",
        "format": "json",
    }
    assert [c["title"] for c in record["chapters"]] == ["第一章 序言", "第二章 正文", "第三章 结论"]
    assert record["chapters"][0]["content"] == [
        "这是一个测试电子书的开始。",
        "本工具展示了电子书转换不需要大量资源。",
    ]


def test_metadata_defaults_apply_per_field() -> None:
    meta = build_record("Chapter 1\nx", {"language": "en"}, created=FIXED)["metadata"]
    assert meta["title"] == "Untitled"
    assert meta["author"] == "Anonymous"
    assert meta["language"] == "en"


def test_text_without_headings_becomes_single_body_chapter() -> None:
    record = build_record("line one\n\n   \n  line two  \n", created=FIXED)
    assert record["chapters"] == [
        {"title": DEFAULT_CHAPTER_TITLE, "content": ["line one", "  line two  "]}
    ]


def test_empty_text_still_produces_a_body_chapter() -> None:
    record = build_record("", created=FIXED)
    assert record["chapters"] == [{"title": DEFAULT_CHAPTER_TITLE, "content": []}]


def test_one_chapter_per_heading() -> None:
    parts = []
    for i in range(1, 51):
        parts.append(f"第{i}章 章节{i}\n")
        for j in range(20):
            parts.append(f"这是第{i}章的第{j + 1}段内容。\n")
        parts.append("\n")
    record = build_record("".join(parts), created=FIXED)

    assert len(record["chapters"]) == 50
    assert record["chapters"][49]["title"] == "第50章 章节50"
    assert all(len(c["content"]) == 20 for c in record["chapters"])


def test_naive_and_offset_timestamps_are_normalised_to_utc() -> None:
    naive = build_record("x", created=datetime(2024, 1, 2, 3, 4, 5, 678000))
    assert naive["metadata"]["created"] == "2024-01-02T03:04:05.678Z"

    beijing = timezone(timedelta(hours=8))
    offset = build_record("x", created=datetime(2024, 1, 2, 11, 0, tzinfo=beijing))
    assert offset["metadata"]["created"] == "2024-01-02T03:00:00.000Z"


def test_created_defaults_to_now() -> None:
    created = build_record("x")["metadata"]["created"]
    assert created.endswith("Z")
    parsed = datetime.fromisoformat(created.replace("Z", "+00:00"))
    assert abs((datetime.now(timezone.utc) - parsed).total_seconds()) < 60


def test_output_is_indented_and_keeps_non_ascii() -> None:
    out = to_structured_record("第一章 序言\n正文", created=FIXED)
    assert '\n  "metadata": {' in out
    assert "第一章 序言" in out
