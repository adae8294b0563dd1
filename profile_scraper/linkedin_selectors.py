"""
Centralised LinkedIn selectors and the field cascades built from them.

Candidates are listed newest markup first; older layouts stay as fallbacks
because LinkedIn rolls redesigns out gradually.
"""
from selenium.webdriver.common.by import By

from .config import EXPERIENCE_CAP, EDUCATION_CAP, SKILL_CAP, SEARCH_RESULT_CAP
from .extractor import (
    AttributeMatcher,
    EntryRule,
    ListRule,
    RuleSet,
    SelectorRule,
    TextMatcher,
    contains,
    is_http_url,
    strip_query,
)
from .models import (
    EducationEntry,
    ExperienceEntry,
    ProfileRecord,
    SearchPageRecord,
    SearchResultEntry,
)


class Selectors:
    # --- top card ---
    NAME = (By.CSS_SELECTOR, 'h1.text-heading-xlarge')
    NAME_ANON = (By.CSS_SELECTOR, '[data-anonymize="person-name"]')
    NAME_LEGACY = (By.CSS_SELECTOR, '.pv-text-details__left-panel h1')
    NAME_ANY_H1 = (By.CSS_SELECTOR, 'main h1')
    HEADLINE = (By.CSS_SELECTOR, '.text-body-medium.break-words')
    HEADLINE_LEGACY = (By.CSS_SELECTOR, '.pv-text-details__left-panel .text-body-medium')
    LOCATION = (By.CSS_SELECTOR, '.text-body-small.inline.t-black--light.break-words')
    LOCATION_LEGACY = (By.CSS_SELECTOR, '.pv-text-details__left-panel .text-body-small')
    CONNECTIONS = (By.CSS_SELECTOR, '.t-black--light .t-bold')
    CONNECTIONS_ANON = (By.CSS_SELECTOR, '[data-anonymize="member-connections"]')
    CONNECTIONS_LINK = (By.CSS_SELECTOR, 'a[href*="/mynetwork/"] span, li.text-body-small span.t-bold')
    PHOTO = (By.CSS_SELECTOR, 'img.pv-top-card-profile-picture__image')
    PHOTO_ANON = (By.CSS_SELECTOR, 'img[data-anonymize="headshot-photo"]')
    PHOTO_ANY = (By.CSS_SELECTOR, '.pv-top-card__photo img, button[aria-label*="photo"] img')
    PROFILE_CARD = (By.CSS_SELECTOR, 'section.artdeco-card')

    # --- about ---
    ABOUT = (By.XPATH, '//section[.//div[@id="about"]]//div[contains(@class,"inline-show-more-text")]//span[@aria-hidden="true"]')
    ABOUT_SIBLING = (By.CSS_SELECTOR, '#about ~ .pv-shared-text-with-see-more .inline-show-more-text')
    ABOUT_LEGACY = (By.CSS_SELECTOR, '.pv-about-section .pv-about__summary-text')

    # --- experience / education / skills sections ---
    EXPERIENCE_ITEMS = (By.XPATH, '//section[.//div[@id="experience"]]//li[contains(@class,"artdeco-list__item")]')
    EXPERIENCE_ITEMS_PVS = (By.XPATH, '//section[.//div[@id="experience"]]//li[contains(@class,"pvs-list__item--line-separated")]')
    EXPERIENCE_ITEMS_LEGACY = (By.CSS_SELECTOR, '.pv-experience-section .pv-entity__summary-info')
    EDUCATION_ITEMS = (By.XPATH, '//section[.//div[@id="education"]]//li[contains(@class,"artdeco-list__item")]')
    EDUCATION_ITEMS_PVS = (By.XPATH, '//section[.//div[@id="education"]]//li[contains(@class,"pvs-list__item--line-separated")]')
    EDUCATION_ITEMS_LEGACY = (By.CSS_SELECTOR, '.pv-education-section .pv-entity__summary-info')
    SKILL_NAMES = (By.XPATH, '//section[.//div[@id="skills"]]//div[contains(@class,"t-bold")]/span[@aria-hidden="true"]')
    SKILL_NAMES_PVS = (By.CSS_SELECTOR, '.pvs-list__item .mr1.t-bold span[aria-hidden="true"]')
    SKILL_NAMES_LEGACY = (By.CSS_SELECTOR, '.pv-skill-category-entity__name span')

    # --- inside one list item ---
    ITEM_BOLD = (By.CSS_SELECTOR, '.t-bold span[aria-hidden="true"]')
    ITEM_BOLD_MR1 = (By.CSS_SELECTOR, '.mr1.t-bold span[aria-hidden="true"]')
    ITEM_NORMAL = (By.CSS_SELECTOR, 'span.t-14.t-normal:not(.t-black--light) span[aria-hidden="true"]')
    ITEM_NORMAL_ANY = (By.CSS_SELECTOR, '.t-14.t-normal span[aria-hidden="true"]')
    ITEM_LIGHT = (By.CSS_SELECTOR, '.t-14.t-normal.t-black--light span[aria-hidden="true"]')
    ITEM_CAPTION = (By.CSS_SELECTOR, '.pvs-entity__caption-wrapper')
    ITEM_TITLE_LEGACY = (By.CSS_SELECTOR, 'h3')
    ITEM_COMPANY_LEGACY = (By.CSS_SELECTOR, '.pv-entity__secondary-title')
    ITEM_DURATION_LEGACY = (By.CSS_SELECTOR, '.pv-entity__bullet-item, .pv-entity__date-range span:not(.visually-hidden)')
    ITEM_SCHOOL_LEGACY = (By.CSS_SELECTOR, '.pv-entity__school-name')
    ITEM_DEGREE_LEGACY = (By.CSS_SELECTOR, '.pv-entity__degree-name span:not(.visually-hidden)')
    ITEM_DATES_LEGACY = (By.CSS_SELECTOR, '.pv-entity__dates span:not(.visually-hidden)')

    # --- search results ---
    RESULT_CARDS = (By.XPATH, '//div[@data-chameleon-result-urn and contains(@data-view-name,"search-entity-result")]')
    RESULT_CARDS_LIST = (By.CSS_SELECTOR, 'li.reusable-search__result-container')
    RESULT_CARDS_ANY = (By.XPATH, '//ul[@role="list"]/li[.//a[contains(@href,"/in/")]]')
    RESULTS_LIST = (By.XPATH, '//ul[@role="list"]')
    CARD_NAME = (By.CSS_SELECTOR, '.mb1 a[href*="/in/"] span[aria-hidden="true"]')
    CARD_NAME_TITLE = (By.CSS_SELECTOR, '.entity-result__title-text a span[aria-hidden="true"]')
    CARD_HEADLINE = (By.CSS_SELECTOR, '.entity-result__primary-subtitle')
    CARD_HEADLINE_MB1 = (By.CSS_SELECTOR, '.mb1 .t-14.t-black.t-normal')
    CARD_LOCATION = (By.CSS_SELECTOR, '.entity-result__secondary-subtitle')
    CARD_LOCATION_MB1 = (By.CSS_SELECTOR, '.mb1 .t-14.t-normal:not(.t-black)')
    CARD_LINK = (By.CSS_SELECTOR, '.mb1 a[href*="/in/"]')
    CARD_LINK_ANY = (By.CSS_SELECTOR, 'a[href*="/in/"]')

    # --- pagination ---
    PAGINATION_NEXT = (
        By.XPATH,
        "//button[contains(@class,'artdeco-pagination__button--next') and not(@disabled)]"
        " | //button[@aria-label='Next' and not(@disabled)]"
        " | //button[.//span[normalize-space()='Next'] and not(@disabled)]",
    )

    # --- session liveness ---
    SIGN_IN_CONTROL = (
        By.CSS_SELECTOR,
        'a.nav__button-secondary[href*="login"], a[data-tracking-control-name*="sign-in"], '
        'button[data-tracking-control-name*="sign-in"], form.login__form',
    )
    SIGN_IN_TEXT = (By.XPATH, "//a[normalize-space()='Sign in'] | //button[normalize-space()='Sign in']")


S = Selectors

# A location line that is really the "500+ connections" line
_NOT_CONNECTIONS = contains("connection")


def build_profile_rules(experience_cap: int = EXPERIENCE_CAP, education_cap: int = EDUCATION_CAP,
                        skill_cap: int = SKILL_CAP) -> RuleSet:
    return RuleSet(
        "profile",
        [
            SelectorRule("name", [
                TextMatcher(S.NAME), TextMatcher(S.NAME_ANON), TextMatcher(S.NAME_LEGACY), TextMatcher(S.NAME_ANY_H1),
            ]),
            SelectorRule("headline", [TextMatcher(S.HEADLINE), TextMatcher(S.HEADLINE_LEGACY)]),
            SelectorRule("location", [
                TextMatcher(S.LOCATION, reject=[_NOT_CONNECTIONS]),
                TextMatcher(S.LOCATION_LEGACY, reject=[_NOT_CONNECTIONS]),
            ]),
            SelectorRule("connections_text", [
                TextMatcher(S.CONNECTIONS_ANON),
                TextMatcher(S.CONNECTIONS),
                TextMatcher(S.CONNECTIONS_LINK),
            ]),
            SelectorRule("profile_photo", [
                AttributeMatcher(S.PHOTO, "src", accept=is_http_url),
                AttributeMatcher(S.PHOTO_ANON, "src", accept=is_http_url),
                AttributeMatcher(S.PHOTO_ANY, "src", accept=is_http_url),
            ]),
            SelectorRule("about", [TextMatcher(S.ABOUT), TextMatcher(S.ABOUT_SIBLING), TextMatcher(S.ABOUT_LEGACY)]),
            EntryRule(
                "experiences",
                [S.EXPERIENCE_ITEMS, S.EXPERIENCE_ITEMS_PVS, S.EXPERIENCE_ITEMS_LEGACY],
                [
                    SelectorRule("title", [TextMatcher(S.ITEM_BOLD_MR1), TextMatcher(S.ITEM_BOLD),
                                           TextMatcher(S.ITEM_TITLE_LEGACY)]),
                    SelectorRule("company", [TextMatcher(S.ITEM_NORMAL), TextMatcher(S.ITEM_NORMAL_ANY),
                                             TextMatcher(S.ITEM_COMPANY_LEGACY)]),
                    SelectorRule("duration", [TextMatcher(S.ITEM_CAPTION), TextMatcher(S.ITEM_LIGHT),
                                              TextMatcher(S.ITEM_DURATION_LEGACY)]),
                ],
                primary="title",
                cap=experience_cap,
                entry_model=ExperienceEntry,
            ),
            EntryRule(
                "education",
                [S.EDUCATION_ITEMS, S.EDUCATION_ITEMS_PVS, S.EDUCATION_ITEMS_LEGACY],
                [
                    SelectorRule("school", [TextMatcher(S.ITEM_BOLD_MR1), TextMatcher(S.ITEM_BOLD),
                                            TextMatcher(S.ITEM_SCHOOL_LEGACY)]),
                    SelectorRule("degree", [TextMatcher(S.ITEM_NORMAL), TextMatcher(S.ITEM_NORMAL_ANY),
                                            TextMatcher(S.ITEM_DEGREE_LEGACY)]),
                    SelectorRule("years", [TextMatcher(S.ITEM_CAPTION), TextMatcher(S.ITEM_LIGHT),
                                           TextMatcher(S.ITEM_DATES_LEGACY)]),
                ],
                primary="school",
                cap=education_cap,
                entry_model=EducationEntry,
            ),
            ListRule("skills", [S.SKILL_NAMES, S.SKILL_NAMES_PVS, S.SKILL_NAMES_LEGACY], cap=skill_cap),
        ],
        record_model=ProfileRecord,
        ready_locator=S.PROFILE_CARD,
    )


def build_search_rules(result_cap: int = SEARCH_RESULT_CAP) -> RuleSet:
    return RuleSet(
        "search",
        [
            EntryRule(
                "results",
                [S.RESULT_CARDS, S.RESULT_CARDS_LIST, S.RESULT_CARDS_ANY],
                [
                    SelectorRule("name", [TextMatcher(S.CARD_NAME), TextMatcher(S.CARD_NAME_TITLE)]),
                    SelectorRule("headline", [TextMatcher(S.CARD_HEADLINE), TextMatcher(S.CARD_HEADLINE_MB1)]),
                    SelectorRule("location", [
                        TextMatcher(S.CARD_LOCATION, reject=[_NOT_CONNECTIONS]),
                        TextMatcher(S.CARD_LOCATION_MB1, reject=[_NOT_CONNECTIONS]),
                    ]),
                    SelectorRule("profile_url", [
                        AttributeMatcher(S.CARD_LINK, "href", accept=is_http_url, transform=strip_query),
                        AttributeMatcher(S.CARD_LINK_ANY, "href", accept=is_http_url, transform=strip_query),
                    ]),
                ],
                primary="name",
                cap=result_cap,
                entry_model=SearchResultEntry,
            ),
        ],
        record_model=SearchPageRecord,
        ready_locator=S.RESULTS_LIST,
    )
