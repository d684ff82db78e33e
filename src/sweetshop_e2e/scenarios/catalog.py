"""Built-in scenarios for the Sweet Shop demo site."""

from __future__ import annotations

from ..models import Locator, Predicate, Scenario, Step, StepAction

HOME = "/"

BROWSE_SWEETS = Locator.xpath("/html/body/div/header/a")
NAV_ABOUT = Locator.xpath("/html/body/nav/div/div/ul/li[1]/a")
NAV_LOGIN = Locator.xpath("/html/body/nav/div/div/ul/li[2]/a")
NAV_BASKET = Locator.xpath("/html/body/nav/div/div/ul/li[4]/a")
ABOUT_BLURB = Locator.xpath("/html/body/div/header/p[2]")
BASKET_COUNT = Locator.xpath("/html/body/div[1]/div/div[1]/h4[1]/span[2]")


def _add_button(card: int) -> Locator:
    return Locator.xpath(f"/html/body/div/div[1]/div[{card}]/div/div[2]/a")


def _basket_line(row: int, tail: str) -> Locator:
    return Locator.xpath(f"/html/body/div[1]/div/div[1]/ul/li[{row}]/{tail}")


ABOUT_TEXT = (
    "Sweet Shop is a project created to help demonstrate some of the great features of "
    "the Chrome DevTools which may be of use to people who help test web applications. "
    "Sweet Shop encompasses common issues found in real-world web applications!"
)


def _open_home() -> Step:
    return Step(action=StepAction.NAVIGATE, value=HOME, description="open home page")


def _click(locator: Locator, description: str) -> Step:
    return Step(
        action=StepAction.CLICK,
        locator=locator,
        predicate=Predicate.CLICKABLE,
        description=description,
    )


def _expect_text(locator: Locator, expected: str, predicate: Predicate | None = None) -> Step:
    return Step(
        action=StepAction.ASSERT_TEXT,
        locator=locator,
        predicate=predicate,
        value=expected,
    )


def home_page_title() -> Scenario:
    return Scenario(
        name="home_page_title",
        description="The home page title is 'Sweet Shop'.",
        steps=[
            _open_home(),
            Step(action=StepAction.ASSERT_TITLE, value="Sweet Shop"),
        ],
    )


def navigation_to_about() -> Scenario:
    return Scenario(
        name="navigation_to_about",
        description="The About link opens the about section.",
        steps=[
            _open_home(),
            _click(NAV_ABOUT, "open About"),
            Step(action=StepAction.ASSERT_URL_CONTAINS, value="about"),
            _expect_text(ABOUT_BLURB, ABOUT_TEXT, Predicate.VISIBLE),
        ],
    )


def remove_from_basket() -> Scenario:
    return Scenario(
        name="remove_from_basket",
        description="Removing an item from a three-item basket updates the total.",
        order=1,
        shares=["basket"],
        steps=[
            _open_home(),
            _click(BROWSE_SWEETS, "browse sweets"),
            _click(_add_button(1), "add Chocolate Cups"),
            _click(_add_button(2), "add Sherbert Straws"),
            _click(_add_button(4), "add Bon Bons"),
            _click(NAV_BASKET, "open basket"),
            _expect_text(BASKET_COUNT, "3", Predicate.VISIBLE),
            _expect_text(_basket_line(4, "strong"), "£2.75"),
            Step(action=StepAction.ACCEPT_DIALOG, description="confirm removal prompt"),
            Step(
                action=StepAction.CLICK,
                locator=_basket_line(1, "div/a"),
                description="remove first basket item",
            ),
            _expect_text(_basket_line(3, "strong"), "£1.75", Predicate.VISIBLE),
        ],
    )


def add_to_basket() -> Scenario:
    return Scenario(
        name="add_to_basket",
        description="The basket keeps the two remaining items and their total.",
        order=2,
        depends_on=["remove_from_basket"],
        shares=["basket"],
        steps=[
            _open_home(),
            _click(BROWSE_SWEETS, "browse sweets"),
            _click(NAV_BASKET, "open basket"),
            _expect_text(BASKET_COUNT, "2", Predicate.VISIBLE),
            _expect_text(_basket_line(1, "div/h6"), "Chocolate Cups"),
            _expect_text(_basket_line(2, "div/h6"), "Sherbert Straws"),
            _expect_text(_basket_line(3, "strong"), "£1.75"),
        ],
    )


def login() -> Scenario:
    return Scenario(
        name="login",
        description="Submitting the login form shows a welcome message.",
        notes=(
            "Submits test@example.com but expects 'Welcome back test@user.com'; "
            "the expected address does not match the submitted one."
        ),
        steps=[
            _open_home(),
            _click(NAV_LOGIN, "open Login"),
            Step(
                action=StepAction.SEND_KEYS,
                locator=Locator.xpath("/html/body/div[1]/div/div/form/div[1]/input[1]"),
                predicate=Predicate.VISIBLE,
                value="test@example.com",
            ),
            Step(
                action=StepAction.SEND_KEYS,
                locator=Locator.xpath("/html/body/div[1]/div/div/form/div[2]/input"),
                value="password",
            ),
            Step(
                action=StepAction.CLICK,
                locator=Locator.xpath("/html/body/div[1]/div/div/form/button"),
                description="submit login",
            ),
            _expect_text(
                Locator.xpath("/html/body/div[1]/header/p"),
                "Welcome back test@user.com",
                Predicate.VISIBLE,
            ),
        ],
    )


def sweetshop_scenarios() -> list[Scenario]:
    """Return the Sweet Shop suite in declaration order."""

    return [
        home_page_title(),
        navigation_to_about(),
        add_to_basket(),
        remove_from_basket(),
        login(),
    ]
