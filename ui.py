import os, requests, streamlit as st

from services.presentation import RenderState, SubmissionSlot, build_view

st.set_page_config(page_title="Rate My Profile", layout="wide")
st.title("Rate My Profile")

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8001")
API_TIMEOUT = float(os.getenv("UI_API_TIMEOUT", "180"))

if "slot" not in st.session_state:
    st.session_state.slot = SubmissionSlot()
slot: SubmissionSlot = st.session_state.slot

# Firebase ID token from the signed-in web client
st.text_input("ID token", key="id_token", type="password")

uploaded = st.file_uploader(
    "Upload your profile photos",
    type=["jpg", "jpeg", "png", "webp"],
    accept_multiple_files=True
)
bio = st.text_area("Bio (optional)")
goals = st.text_input("Relationship goals (optional)")
tone = st.selectbox("Feedback tone", ["friendly", "witty", "serious"])
analyze = st.button("Analyze My Profile", disabled=not (uploaded or bio.strip()))


def call_api(files, form):
    fs = [("files", (f.name, f.getvalue(), f.type or "image/jpeg")) for f in files]
    token = st.session_state.get("id_token", "")
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    r = requests.post(API_BASE + "/api/analyze", files=fs, data=form, headers=headers, timeout=API_TIMEOUT)
    if r.status_code in (400, 401, 413):
        st.error(r.json().get("detail", r.text))
        return None
    r.raise_for_status()
    return r.json()


if analyze:
    token = slot.begin()
    with st.spinner("Analyzing..."):
        form = {k: v for k, v in {"bio": bio, "goals": goals, "tone": tone}.items() if v}
        try:
            data = call_api(uploaded or [], form)
        except requests.RequestException as e:
            st.warning(f"Analysis failed: {e}")
            data = None
    slot.accept(token, data)


def render_feedback(items):
    for item in items:
        icon = "✅" if item.type == "positive" else "⚠️"
        st.markdown(f"{icon} {item.text}")


view = slot.view()
if view is None:
    st.info("Your analysis will appear here")
elif view.state == RenderState.LOADING:
    st.info("Analyzing...")
else:
    if view.state == RenderState.FAILED:
        st.warning(view.banner)
    elif view.banner:
        st.caption(view.banner)

    c1, c2 = st.columns([1, 3])
    if view.score:
        c1.metric("Overall", view.score, view.badge, delta_color="off")
    if view.swipe:
        c2.markdown(f"**First impression:** {view.swipe}")
        c2.caption(view.swipeReason)

    if view.photos and uploaded:
        st.subheader("Your photos")
        cols = st.columns(min(len(view.photos), 3))
        for i, (photo, f) in enumerate(zip(view.photos, uploaded)):
            col = cols[i % len(cols)]
            col.image(f, use_column_width=True)
            col.markdown(f"**{photo.verdict}**: {photo.description}")
            col.caption(photo.suggestion)

    if view.photoFeedback:
        st.subheader("Photo Feedback")
        render_feedback(view.photoFeedback)
    if view.bioFeedback:
        st.subheader("Bio & Prompt Feedback")
        render_feedback(view.bioFeedback)
    if view.suggestions:
        st.subheader("Top Improvement Suggestions")
        for s in view.suggestions:
            st.markdown(f"**{s.title}**")
            st.write(s.description)
            st.caption(s.actionText)
    if view.details:
        st.subheader("Detailed Analysis")
        for row in view.details:
            st.markdown(f"**{row.label}** {row.score or ''}")
            st.write(row.feedback)
