# app.py
import re
from typing import Any, Dict, List

import streamlit as st

from giftgen.client import GiftApiClient, GiftApiError, SessionStore
from giftgen.config import load_settings
from giftgen.i18n import LANGUAGE_NAMES, LANGUAGES, get_translator
from giftgen.models import GiftRequest
from giftgen.options import BUDGET_OPTIONS, GENDERS, INTEREST_SUGGESTIONS, MBTI_TYPES, PAST_GIFT_SUGGESTIONS
from giftgen.validation import validate_request

st.set_page_config(page_title="Gift Recommender", page_icon="🎁", layout="centered")

settings = load_settings()
MODES = ("full", "fast", "offline")
CUSTOM = "__custom__"
NONE = "__none__"


def _init_state() -> None:
    defaults = {"language": "zh", "mode": "full"}
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v


def _split(text: str) -> List[str]:
    return [p.strip() for p in re.split(r"[,，、;；]+", text or "") if p.strip()]


def _merge(selected: List[str], extra: str) -> List[str]:
    out: List[str] = []
    for item in list(selected) + _split(extra):
        if item not in out:
            out.append(item)
    return out


def _format_budget(low: int, high: int, lang: str) -> str:
    return f"${low}-{high}" if lang == "en" else f"{low}-{high}元"


_init_state()

# ---------------- sidebar ----------------
with st.sidebar:
    st.selectbox(
        get_translator(st.session_state["language"])("language.switch"),
        LANGUAGES,
        format_func=lambda code: LANGUAGE_NAMES[code],
        key="language",
    )
    t = get_translator(st.session_state["language"])
    st.radio(t("questionnaire.mode.label"), MODES,
             format_func=lambda m: t(f"questionnaire.mode.{m}"), key="mode")

lang = st.session_state["language"]
store = SessionStore(st.session_state)
client = GiftApiClient(settings.api_url)

st.title(t("home.title"))
st.caption(t("home.subtitle"))


# ---------------- results ----------------
def render_results() -> bool:
    try:
        response = store.load_response()
        request = store.load_request()
    except ValueError:
        st.warning(t("results.corrupt"))
        store.clear()
        return False
    if response is None:
        return False

    st.markdown(f"### ✨ {t('results.title')}")
    if request is not None:
        gender = t(f"questionnaire.gender.{request.gender}")
        st.caption(t("results.subtitle", {"age": request.age, "gender": gender}))

    for i, rec in enumerate(response.recommendations, start=1):
        with st.container(border=True):
            st.markdown(f"**{i}. {rec.giftName}**")
            st.write(f"{t('results.reason')}: {rec.reason}")
            st.caption(f"{t('results.price')}: {rec.estimatedPrice}")

    st.markdown(f"#### {t('results.blessing')}")
    st.success(response.blessing)

    if st.button(t("results.startOver"), use_container_width=True):
        store.clear()
        st.rerun()
    return True


# ---------------- questionnaire ----------------
def render_form() -> None:
    st.markdown(f"### {t('questionnaire.title')}")
    slots: Dict[str, Any] = {}

    with st.form("gift_form", clear_on_submit=False):
        gender = st.radio(t("questionnaire.gender.label"), GENDERS, horizontal=True,
                          format_func=lambda g: t(f"questionnaire.gender.{g}"))
        slots["gender"] = st.empty()

        age = st.number_input(t("questionnaire.age.label"), min_value=0, max_value=150, value=25, step=1)
        slots["age"] = st.empty()

        picked = st.multiselect(t("questionnaire.interests.label"), INTEREST_SUGGESTIONS[lang])
        extra_interests = st.text_input(t("questionnaire.interests.custom"))
        slots["interests"] = st.empty()

        past_picked = st.multiselect(t("questionnaire.pastGifts.label"), PAST_GIFT_SUGGESTIONS[lang])
        extra_past = st.text_input(t("questionnaire.pastGifts.placeholder"))
        slots["pastGifts"] = st.empty()

        budget_choice = st.selectbox(t("questionnaire.budget.label"), list(BUDGET_OPTIONS[lang]) + [CUSTOM],
                                     format_func=lambda b: t("questionnaire.budget.custom") if b == CUSTOM else b)
        c1, c2 = st.columns(2)
        with c1:
            budget_min = st.number_input(t("questionnaire.budget.min"), min_value=0, value=100, step=50)
        with c2:
            budget_max = st.number_input(t("questionnaire.budget.max"), min_value=0, value=300, step=50)
        slots["budget"] = st.empty()

        st.markdown(t("questionnaire.birthday.label"))
        b1, b2 = st.columns(2)
        with b1:
            month = st.selectbox(t("questionnaire.birthday.month"), [NONE] + list(range(1, 13)),
                                 format_func=lambda m: t("questionnaire.birthday.none") if m == NONE else str(m))
        with b2:
            day = st.selectbox(t("questionnaire.birthday.day"), [NONE] + list(range(1, 32)),
                               format_func=lambda d: t("questionnaire.birthday.none") if d == NONE else str(d))
        slots["birthdayDate"] = st.empty()

        mbti = st.selectbox(t("questionnaire.mbti.label"), [NONE] + list(MBTI_TYPES),
                            format_func=lambda m: t("questionnaire.mbti.none") if m == NONE else m)
        slots["mbti"] = st.empty()

        submitted = st.form_submit_button(t("questionnaire.submit"), use_container_width=True)

    if not submitted:
        return

    if budget_choice == CUSTOM:
        budget = _format_budget(int(budget_min), int(budget_max), lang)
    else:
        budget = budget_choice
    birthday = f"{month:02d}-{day:02d}" if month != NONE and day != NONE else None

    data = {
        "gender": gender,
        "age": int(age),
        "interests": _merge(picked, extra_interests),
        "pastGifts": _merge(past_picked, extra_past),
        "budget": budget,
        "birthdayDate": birthday,
        "mbti": None if mbti == NONE else mbti,
        "language": lang,
    }
    errors = validate_request(data, t)
    if errors:
        for name, message in errors.items():
            slot = slots.get(name)
            (slot.error if slot is not None else st.error)(message)
        return

    request = GiftRequest(**data)
    with st.spinner(t("questionnaire.generating")):
        try:
            response = client.recommend(request, st.session_state["mode"])
        except GiftApiError as e:
            for name, message in e.fields.items():
                if name in slots:
                    slots[name].error(message)
            if e.status_code is None:
                st.error(t("errors.network"))
            else:
                st.error(f"{e} {e.details}".strip())
            return
        except ValueError:
            st.error(t("results.corrupt"))
            return
    store.save(request, response)
    st.rerun()


if not render_results():
    render_form()
