import os
import time
import uuid
from pathlib import Path

import streamlit as st

from config import FORMATS, config_from_env, prepare_output_dir
from errors import SetupError
from lighthouse import lighthouse_version
from report_pdf import PDF_FILENAME, build_pdf
from run_audit import audit_urls
from summary import format_duration
from targets import collect_targets

APP_TITLE = "Lighthouse Batch Auditor"
CATEGORIES = ["performance", "accessibility", "best-practices", "seo"]


def run_audit(raw_urls: str, output_format: str, categories, concurrency: int, chrome_endpoint: str):
    run_root = Path("runs") / f"{int(time.time())}_{uuid.uuid4().hex[:8]}"

    config = config_from_env(
        output_dir=str(run_root),
        output_format=output_format,
        categories=",".join(categories) if categories else None,
        chrome_endpoint=chrome_endpoint.strip() or None,
        concurrency=concurrency,
    )
    targets = collect_targets(raw_urls.splitlines())
    prepare_output_dir(config)

    summary, results = audit_urls(targets, config)
    pdf_path = build_pdf(summary, results, os.path.join(config.output_dir, PDF_FILENAME))
    return summary, results, pdf_path


st.set_page_config(page_title=APP_TITLE, layout="centered")
st.title(APP_TITLE)
st.caption("Paste one URL per line → runs Lighthouse against each page and writes one report per URL.")

with st.sidebar:
    st.subheader("Settings")
    output_format = st.selectbox("Report format", options=list(FORMATS), index=0)
    categories = st.multiselect("Categories (empty = all)", options=CATEGORIES)
    concurrency = st.slider("Audits at a time", min_value=1, max_value=8, value=3)
    chrome_endpoint = st.text_input("Remote Chrome endpoint (optional)", placeholder="ws://host:9222/devtools/browser/…")

    st.subheader("Notes")
    st.write(
        "- Launches a local headless Chrome unless a remote endpoint is given.\n"
        "- URLs without a scheme get https://.\n"
        "- A failed URL is listed in the summary; the rest of the batch still runs.\n"
        "- Generates a PDF summary of the run."
    )

# Lighthouse must be runnable before any audit
try:
    version = lighthouse_version(config_from_env().lighthouse_path)
    st.caption(f"Lighthouse {version}")
except Exception as e:
    st.error("Lighthouse is not installed (or could not be run) in this environment.")
    st.exception(e)
    st.stop()

raw_urls = st.text_area("URLs", placeholder="example.com\nhttps://www.example.org/pricing")
run_btn = st.button("Run audit", type="primary", disabled=not raw_urls.strip())

if run_btn:
    try:
        with st.spinner("Running audits… (one Lighthouse run per URL)"):
            summary, results, pdf_path = run_audit(raw_urls, output_format, categories, concurrency, chrome_endpoint)
    except SetupError as e:
        st.error(str(e))
        if e.remedy:
            st.info(e.remedy)
        st.stop()
    except Exception as e:
        st.error("Audit failed.")
        st.exception(e)
        st.stop()

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total", summary.total)
    c2.metric("Succeeded", summary.succeeded)
    c3.metric("Failed", summary.failed)
    c4.metric("Duration", format_duration(summary.elapsed))

    st.table(
        [
            {
                "URL": r.target,
                "Status": "OK" if r.succeeded else "FAILED",
                "Report": r.output_path or "",
                "Error": r.error or "",
            }
            for r in results
        ]
    )

    with open(pdf_path, "rb") as f:
        pdf_bytes = f.read()

    st.download_button(
        label="Download PDF summary",
        data=pdf_bytes,
        file_name=f"lighthouse_audit_{uuid.uuid4().hex[:8]}.pdf",
        mime="application/pdf",
    )
    st.caption(f"Server folder: {os.path.dirname(pdf_path)}")
