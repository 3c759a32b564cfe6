"""
Main entry point for the Script Training Data application.
"""
import os
import logging
import tempfile
import streamlit as st
from dotenv import load_dotenv

from config.settings import config_manager
from data.manager import DataManager
from ui.components import DatasetOptionsForm, DatasetDisplayComponent, DatasetExportComponent, FineTuningComponent
from business_logic.error_handler import error_handler
from business_logic.script_generator import DEFAULT_SYNTHETIC_TOPICS
from business_logic.training_data_controller import TrainingDataController

# Load environment variables from .env file
load_dotenv()

# Set up logging
logger = logging.getLogger(__name__)

SOURCE_UPLOAD = "Upload batch file"
SOURCE_FOLDER = "Creator folder"


def build_from_upload(controller, uploaded_file, options):
    """
    Assemble a dataset from an uploaded JSON batch file.

    Returns:
        Tuple of (dataset, report, message); dataset is None on failure
    """
    with tempfile.NamedTemporaryFile(mode='wb', suffix='.json', delete=False) as f:
        f.write(uploaded_file.getvalue())
        batch_path = f.name

    try:
        creator = os.path.splitext(uploaded_file.name)[0]
        success, dataset, report, message = controller.process_batch_file(batch_path, options, creator=creator)
    finally:
        os.remove(batch_path)

    return (dataset, report, message) if success else (None, None, message)


def build_from_folder(controller, folder_name, options, topics_per_template=0):
    """
    Assemble a dataset from a stored creator folder, optionally adding synthetic scripts.

    Returns:
        Tuple of (dataset, report, message); dataset is None on failure
    """
    try:
        results = controller.data_manager.load_transcription_results(folder_name)
    except (FileNotFoundError, ValueError) as e:
        return None, None, str(e)

    synthetic_scripts = []
    if topics_per_template and options.include_synthetic_scripts:
        try:
            _, synthetic_scripts = controller.generate_synthetic_scripts(
                results, DEFAULT_SYNTHETIC_TOPICS, topics_per_template
            )
        except ValueError as e:
            st.warning(f"⚠️ Synthetic scripts skipped: {str(e)}")

    dataset, report = controller.generate_dataset(results, synthetic_scripts, options, creator=folder_name)
    return dataset, report, dataset.metadata.description


def main():
    """Main application entry point."""
    st.set_page_config(
        page_title="Script Training Data",
        page_icon="🎬",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    st.title("🎬 Script Training Data")
    st.markdown("Build fine-tuning datasets from transcribed short-form videos")

    config = config_manager.load_config()
    if not config.openai_api_key:
        st.info("ℹ️ OPENAI_API_KEY is not set. Synthetic scripts and fine-tuning are disabled.")

    try:
        data_manager = DataManager(cache_ttl_hours=config.cache_timeout_hours)
    except OSError as e:
        st.error("❌ **Data Directory Error**")
        st.error(f"Cannot create the creator data directory: {str(e)}")
        st.stop()

    controller = TrainingDataController(data_manager=data_manager)

    with st.sidebar:
        st.header("📂 Data Source")
        source = st.radio("Load transcriptions from:", options=[SOURCE_UPLOAD, SOURCE_FOLDER])

        uploaded_file = None
        folder_name = None
        topics_per_template = 0

        if source == SOURCE_UPLOAD:
            uploaded_file = st.file_uploader("Transcription batch (JSON)", type=["json"])
        else:
            folders = data_manager.list_creator_folders()
            if folders:
                folder_name = st.selectbox("Creator folder", options=folders)
            else:
                st.info(f"No creator folders found in {config.data_dir}")

            if config.openai_api_key:
                topics_per_template = st.number_input(
                    "Synthetic topics per template",
                    min_value=0,
                    max_value=len(DEFAULT_SYNTHETIC_TOPICS),
                    value=0,
                    help="Generate synthetic scripts from each video's template"
                )

    options, submitted = DatasetOptionsForm(controller.default_options()).render()

    if submitted:
        if source == SOURCE_UPLOAD and uploaded_file is None:
            st.warning("⚠️ Upload a transcription batch file first.")
        elif source == SOURCE_FOLDER and not folder_name:
            st.warning("⚠️ Select a creator folder first.")
        else:
            with st.spinner("Assembling dataset..."):
                if source == SOURCE_UPLOAD:
                    dataset, report, message = build_from_upload(controller, uploaded_file, options)
                else:
                    dataset, report, message = build_from_folder(
                        controller, folder_name, options, int(topics_per_template)
                    )

            if dataset is None:
                st.error(f"❌ {message}")
                logger.error(f"Dataset generation failed: {message}")
            else:
                st.session_state['dataset'] = dataset
                st.session_state['validation_report'] = report
                st.success(f"✅ {message}")

    dataset = st.session_state.get('dataset')
    report = st.session_state.get('validation_report')

    if dataset is not None and report is not None:
        display = DatasetDisplayComponent()
        display.render_summary(dataset)
        display.render_validation(report)

        examples_tab, topics_tab = st.tabs(["📝 Examples", "🏷️ Topics"])
        with examples_tab:
            display.render_examples(dataset)
        with topics_tab:
            display.render_topics(dataset)

        DatasetExportComponent().render_export_interface(dataset)

        if config.openai_api_key:
            with st.expander("🧠 Fine-Tuning"):
                FineTuningComponent().render(dataset, report)

    with st.expander("System Information"):
        col1, col2 = st.columns(2)

        with col1:
            st.write("**Configuration:**")
            st.write(f"Generation Model: {config.generation_model}")
            st.write(f"Fine-Tuning Base Model: {config.fine_tuning_base_model}")
            st.write(f"Cache Timeout: {config.cache_timeout_hours} hours")

        with col2:
            st.write("**Data Status:**")
            st.write(f"Data Directory: {config.data_dir}")
            st.write(f"Creator Folders: {len(data_manager.list_creator_folders())}")
            st.write(f"Errors Logged: {error_handler.get_error_statistics()['total_errors']}")


if __name__ == "__main__":
    main()
