import streamlit as st
from dotenv import load_dotenv

from src.smartdoc.domain.analysis_models import AnalysisRequest
from src.smartdoc.infrastructure.session_store import InMemorySessionStore
from src.smartdoc.services import catalog_service
from src.smartdoc.services.assistant import AssistantService, SessionBusy


load_dotenv()

st.set_page_config(page_title="Smart Doc", page_icon="📄", layout="wide")

st.markdown(
    """
    <style>
      :root { --brand:#235347; --accent:#8EB69B; --darkest:#051F20; }
      .block-container { padding-top: 1.25rem; padding-bottom: 2rem; }
      h1 { font-weight: 700; color: var(--darkest); }
      div.stButton > button[kind="primary"] { background: var(--brand); border-color: var(--brand); color: #fff; }
      section[data-testid="stSidebar"] { background: #0B2B26; }
      section[data-testid="stSidebar"] * { color: #DAF1DE; }
    </style>
    """,
    unsafe_allow_html=True,
)

# ---------- Session state ----------
if "logged_in" not in st.session_state:
    st.session_state.logged_in = False
if "view" not in st.session_state:
    st.session_state.view = "Dashboard"
if "assistant" not in st.session_state:
    # One store per browser session keeps conversations isolated.
    st.session_state.assistant = AssistantService(store=InMemorySessionStore())
if "chat_session_id" not in st.session_state:
    st.session_state.chat_session_id = st.session_state.assistant.start_session().session_id
if "analysis" not in st.session_state:
    st.session_state.analysis = None
if "upload_nonce" not in st.session_state:
    st.session_state.upload_nonce = 0


def _reset_analysis() -> None:
    st.session_state.analysis = None


def _reset_analysis_context() -> None:
    # A new uploader key drops the previously selected file
    _reset_analysis()
    st.session_state.upload_nonce += 1


def _logout() -> None:
    st.session_state.logged_in = False
    st.session_state.view = "Dashboard"


def render_login() -> None:
    st.title("Smart Doc")
    st.caption("Inteligência documental para a sua empresa")
    with st.form("login"):
        st.text_input("Email", value="alice@paipe.co")
        st.text_input("Senha", type="password")
        if st.form_submit_button("Entrar", type="primary"):
            # Mock login: any credentials are accepted.
            st.session_state.logged_in = True
            st.rerun()


def render_stats() -> None:
    cols = st.columns(3)
    for col, stat in zip(cols, catalog_service.list_stats()):
        with col:
            st.metric(stat.title, stat.value, stat.sub)


def render_documents() -> None:
    st.subheader("Documentos Recentes")
    c1, c2 = st.columns([2, 1])
    with c1:
        query = st.text_input("Buscar", key="doc_query", placeholder="Nome ou tipo do documento")
    with c2:
        status = st.selectbox("Status", ["Todos", "Processed", "Pending", "Error"], key="doc_status")
    docs = catalog_service.list_documents(status=None if status == "Todos" else status, query=query)
    if not docs:
        st.caption("Nenhum documento encontrado.")
        return
    st.dataframe(
        [
            {"Nome": d.name, "Tipo": d.type, "Enviado por": d.uploaded_by, "Data": d.date, "Tamanho": d.size, "Status": d.status}
            for d in docs
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_analysis_panel(assistant: AssistantService) -> None:
    st.subheader("Análise de Documentos")
    c1, c2 = st.columns(2)
    with c1:
        doc_type = st.selectbox("Tipo de Documento", catalog_service.DOC_TYPES, key="doc_type", on_change=_reset_analysis_context)
    with c2:
        company = st.selectbox("Empresa / Fonte", catalog_service.COMPANIES, key="company", on_change=_reset_analysis_context)
    uploaded = st.file_uploader(
        "Arraste um arquivo ou clique para enviar", key=f"upload_{st.session_state.upload_nonce}",
        on_change=_reset_analysis,
    )
    if uploaded is not None:
        st.caption(f"{uploaded.name} · {catalog_service.format_size(uploaded.size)}")
    if st.button("Analisar Documento", type="primary", disabled=uploaded is None):
        req = AnalysisRequest(
            file_name=uploaded.name,
            file_type=uploaded.type or "",
            company=company,
            doc_type=doc_type,
            session_id=st.session_state.chat_session_id,
        )
        with st.spinner("Analisando documento…"):
            try:
                st.session_state.analysis = assistant.analyze(req)
            except SessionBusy:
                st.warning("Uma análise já está em andamento.")
    result = st.session_state.analysis
    if result is not None:
        if result.fallback:
            st.error(result.text)
        else:
            st.markdown(result.text)


def render_chat_panel(assistant: AssistantService) -> None:
    st.subheader("Chat com a Base de Conhecimento")
    sid = st.session_state.chat_session_id
    session = assistant.store.get_session(sid)
    subjects = catalog_service.KNOWLEDGE_SUBJECTS
    subject = st.selectbox(
        "Assunto / Base de Conhecimento",
        subjects,
        index=subjects.index(session.subject) if session.subject in subjects else 0,
        key="chat_subject",
    )
    if subject != session.subject:
        assistant.change_subject(sid, subject)

    for msg in assistant.store.list_messages(sid):
        with st.chat_message("assistant" if msg.role == "model" else "user"):
            st.markdown(msg.text)
            st.caption(msg.timestamp.strftime("%H:%M"))

    prompt = st.chat_input("Digite sua pergunta…")
    if prompt and prompt.strip():
        with st.spinner("Consultando a base de conhecimento…"):
            try:
                assistant.send_message(sid, prompt)
            except SessionBusy:
                st.warning("Aguarde a resposta anterior.")
        st.rerun()


def render_dashboard() -> None:
    assistant: AssistantService = st.session_state.assistant
    user = catalog_service.current_user()
    st.title(f"Olá, {user.name.split()[0]}")
    render_stats()
    st.markdown("---")
    left, right = st.columns(2)
    with left:
        render_analysis_panel(assistant)
    with right:
        render_chat_panel(assistant)
    st.markdown("---")
    render_documents()


if not st.session_state.logged_in:
    render_login()
    st.stop()

with st.sidebar:
    me = catalog_service.current_user()
    st.header("Smart Doc")
    st.caption(f"{me.name} · {me.role.value}")
    st.session_state.view = st.radio("Navegação", ["Dashboard", "Conhecimento", "Configurações"], key="nav")
    st.button("Sair", on_click=_logout)

if st.session_state.view == "Dashboard":
    render_dashboard()
else:
    st.header("Em Construção")
    st.caption(f"O módulo de {st.session_state.view} será implementado em breve.")
