"""TodoMVC behaviour checks, run against whatever bundle the server maps to /bundle.js."""
import os

import pytest
from playwright.sync_api import Page, sync_playwright

BASE_URL = os.getenv("JS_MIN_BENCH_URL", "http://localhost:9000")


@pytest.fixture()
def page():
    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(
            headless=True, args=["--no-sandbox", "--disable-dev-shm-usage"]
        )
        page = browser.new_page()
        errors = []
        page.on("pageerror", lambda exc: errors.append(str(exc)))
        page.goto(f"{BASE_URL}/", wait_until="load")
        yield page
        browser.close()
        assert not errors, f"uncaught page errors: {errors}"


def add_todo(page: Page, title: str) -> None:
    page.fill(".new-todo", title)
    page.press(".new-todo", "Enter")


def test_starts_empty(page: Page):
    page.wait_for_selector(".new-todo")
    assert page.locator(".todo-list li").count() == 0


def test_add_items(page: Page):
    add_todo(page, "buy milk")
    add_todo(page, "walk dog")
    items = page.locator(".todo-list li label")
    assert items.all_inner_texts() == ["buy milk", "walk dog"]
    assert "2" in page.inner_text(".todo-count")


def test_complete_item_updates_counter(page: Page):
    add_todo(page, "one")
    add_todo(page, "two")
    page.locator(".todo-list li .toggle").first.check()
    page.wait_for_selector(".todo-list li.completed")
    assert "1" in page.inner_text(".todo-count")


def test_active_filter_hides_completed(page: Page):
    add_todo(page, "done")
    add_todo(page, "pending")
    page.locator(".todo-list li .toggle").first.check()
    page.click("a[href='#/active']")
    page.wait_for_function("document.querySelectorAll('.todo-list li').length === 1")
    assert page.locator(".todo-list li label").all_inner_texts() == ["pending"]
