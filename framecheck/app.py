"""Streamlit Application Runner

Streamlit interface for the capture test harness. The orchestrator lives on
an asyncio event loop in a background thread; the page submits requests to
that loop and re-renders from the orchestrator's published state.

Run with:
    streamlit run framecheck/app.py
"""

import asyncio
import logging
import threading
import time

import streamlit as st

from framecheck.capture.simulated import SimulatedCaptureSource
from framecheck.config.config_loader import config
from framecheck.engine.orchestrator import TestOrchestrator
from framecheck.engine.scenarios import scenario_names
from framecheck.ui.display import TestDisplay


logger = logging.getLogger(__name__)


class StreamlitApp:
    """Streamlit application wrapper for the test orchestrator.
    
    This class manages the integration between the async orchestrator and
    the Streamlit UI, running the orchestrator's event loop in a background
    thread that survives page reruns.
    """
    
    def __init__(self):
        """Initialize the Streamlit app."""
        if 'loop' not in st.session_state:
            st.session_state.loop = None
        if 'orchestrator' not in st.session_state:
            st.session_state.orchestrator = None
    
    def _start_backend(self) -> None:
        """Start the event loop thread and load capture targets."""
        loop = asyncio.new_event_loop()
        thread = threading.Thread(target=loop.run_forever, name="framecheck-loop", daemon=True)
        thread.start()
        
        orchestrator = TestOrchestrator(SimulatedCaptureSource())
        future = asyncio.run_coroutine_threadsafe(orchestrator.load_targets(), loop)
        future.result(timeout=5)
        
        st.session_state.loop = loop
        st.session_state.orchestrator = orchestrator
        logger.info("Orchestrator backend started")
    
    def _submit(self, coroutine) -> None:
        asyncio.run_coroutine_threadsafe(coroutine, st.session_state.loop)
    
    def _call(self, function, *args) -> None:
        st.session_state.loop.call_soon_threadsafe(function, *args)
    
    def render(self):
        """Render the Streamlit interface."""
        st.set_page_config(
            page_title="Capture Timing Tests",
            page_icon="🎞️",
            layout="wide"
        )
        
        if st.session_state.orchestrator is None:
            self._start_backend()
        orchestrator = st.session_state.orchestrator
        
        st.title("🎞️ Capture Timing Tests")
        st.markdown("---")
        
        with st.sidebar:
            st.header("Capture Target")
            
            labels = [target.label for target in orchestrator.targets]
            if labels:
                index = st.selectbox("Target", range(len(labels)), format_func=lambda i: labels[i])
                self._call(orchestrator.select_target, index)
            else:
                st.warning("No capture targets found")
            if st.button("🔄 Reload targets", disabled=orchestrator.is_running):
                self._submit(orchestrator.load_targets())
            
            st.markdown("---")
            st.header("Scenarios")
            scenario = st.selectbox("Scenario", scenario_names())
            
            submitted = False
            col1, col2 = st.columns(2)
            with col1:
                if st.button("▶️ Run", disabled=orchestrator.is_running):
                    self._submit(orchestrator.run(scenario))
                    submitted = True
            with col2:
                if st.button("⏭️ Run all", disabled=orchestrator.is_running):
                    self._submit(orchestrator.run_all())
                    submitted = True
            
            st.markdown("---")
            enable_logging = st.checkbox("Record log", value=orchestrator.enable_logging)
            if enable_logging != orchestrator.enable_logging:
                self._call(setattr, orchestrator, 'enable_logging', enable_logging)
            if st.button("🧹 Clear log"):
                self._call(orchestrator.clear_log)
        
        display = TestDisplay(
            orchestrator,
            allowed_error=config.get('tolerances.allowed_frame_rate_error', 0.3),
        )
        display.render()
        
        # Auto-refresh while a scenario runs
        if orchestrator.is_running or submitted:
            time.sleep(0.5)
            st.rerun()


def main():
    """Main entry point for Streamlit app."""
    app = StreamlitApp()
    app.render()


if __name__ == "__main__":
    main()
