"""
UI components for the Script Training Data application.
"""

import streamlit as st
from typing import Dict, Any, List, Optional, Tuple
import logging
import pandas as pd

from business_logic.dataset_assembler import AssemblyOptions
from business_logic.fine_tuning_manager import FineTuningManager
from data.exporters import DatasetExporter, FORMAT_JSON, FORMAT_JSONL
from models.data_models import TrainingDataset, ValidationReport

logger = logging.getLogger(__name__)


EXPORT_FORMAT_OPTIONS = {
    "JSONL (Fine-tuning)": FORMAT_JSONL,
    "JSON (Full dataset)": FORMAT_JSON,
}


class DatasetOptionsForm:
    """
    DatasetOptionsForm component for choosing which examples enter a dataset.

    Handles the source toggles, the metadata flag, the per-video cap and the
    view-count floor, with validation on submit.
    """

    def __init__(self, defaults: AssemblyOptions):
        """
        Initialize the DatasetOptionsForm.

        Args:
            defaults: Options shown when the form first renders
        """
        self.defaults = defaults

    def render(self) -> Tuple[AssemblyOptions, bool]:
        """
        Render the options form.

        Returns:
            Tuple of (options, submitted_and_valid)
        """
        st.subheader("⚙️ Dataset Options")

        with st.form("dataset_options_form", clear_on_submit=False):
            col1, col2 = st.columns(2)

            with col1:
                include_originals = st.checkbox(
                    "Include original transcriptions",
                    value=self.defaults.include_original_transcriptions,
                    help="Turn successful, segmented transcriptions into examples"
                )
                include_synthetic = st.checkbox(
                    "Include synthetic scripts",
                    value=self.defaults.include_synthetic_scripts,
                    help="Add scripts generated from templates for new topics"
                )
                include_metadata = st.checkbox(
                    "Include example metadata",
                    value=self.defaults.include_metadata,
                    help="Attach source, topic and engagement details to each example"
                )

            with col2:
                max_examples_per_video = st.number_input(
                    "Max examples per video",
                    min_value=1,
                    value=self.defaults.max_examples_per_video,
                    step=1
                )
                min_view_count = st.number_input(
                    "Minimum view count",
                    min_value=0,
                    value=self.defaults.min_view_count,
                    step=100,
                    help="Videos below this view count are left out"
                )

            submitted = st.form_submit_button("Generate Training Dataset", type="primary")

        options = AssemblyOptions(
            include_metadata=include_metadata,
            include_original_transcriptions=include_originals,
            include_synthetic_scripts=include_synthetic,
            max_examples_per_video=int(max_examples_per_video),
            min_view_count=int(min_view_count)
        )

        if not submitted:
            return options, False

        errors = self._validate_options(options)
        if errors:
            for error in errors:
                st.error(f"❌ {error}")
            return options, False

        return options, True

    def _validate_options(self, options: AssemblyOptions) -> List[str]:
        errors = []
        if not options.include_original_transcriptions and not options.include_synthetic_scripts:
            errors.append("Select at least one example source.")
        if options.max_examples_per_video < 1:
            errors.append("Max examples per video must be at least 1.")
        if options.min_view_count < 0:
            errors.append("Minimum view count cannot be negative.")
        return errors


class DatasetDisplayComponent:
    """
    Component for displaying an assembled dataset and its validation report.
    """

    def render_summary(self, dataset: TrainingDataset):
        """Show example counts, engagement averages, platforms and topics."""
        summary = dataset.summary

        st.subheader("📊 Dataset Summary")
        st.caption(dataset.metadata.description)

        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.metric("Total Examples", summary.total_examples)
        with col2:
            st.metric("Original", summary.original_examples)
        with col3:
            st.metric("Synthetic", summary.synthetic_examples)
        with col4:
            avg_views = f"{summary.avg_view_count:,}" if summary.avg_view_count is not None else "N/A"
            st.metric("Avg Views", avg_views)

        st.write(f"**Platforms:** {', '.join(summary.platforms) if summary.platforms else 'None'}")
        st.write(f"**Topics:** {', '.join(summary.topics) if summary.topics else 'None'}")

    def render_validation(self, report: ValidationReport):
        """Show errors, warnings and length statistics."""
        if report.valid:
            st.success("✅ Dataset is ready for fine-tuning")
        else:
            st.error("❌ Dataset has errors that must be fixed before fine-tuning")

        for error in report.errors:
            st.error(f"❌ {error}")
        for warning in report.warnings:
            st.warning(f"⚠️ {warning}")

        with st.expander("📏 Length Statistics"):
            st.dataframe(self.build_stats_frame(report), use_container_width=True)

    def render_examples(self, dataset: TrainingDataset, limit: int = 20):
        """Preview the first examples of a dataset."""
        if not dataset.examples:
            st.info("No examples in this dataset.")
            return

        st.dataframe(self.build_examples_frame(dataset, limit), use_container_width=True)
        if len(dataset.examples) > limit:
            st.caption(f"Showing {limit} of {len(dataset.examples)} examples")

    def render_topics(self, dataset: TrainingDataset):
        """Show how examples are spread over topics."""
        topic_frame = self.build_topic_frame(dataset)
        if topic_frame.empty:
            st.info("Topic breakdown needs example metadata.")
            return

        st.bar_chart(topic_frame.set_index("Topic"))

    def build_examples_frame(self, dataset: TrainingDataset, limit: Optional[int] = None) -> pd.DataFrame:
        rows = []
        for example in dataset.examples[:limit]:
            metadata = example.metadata
            rows.append({
                'Source': metadata.source if metadata else '',
                'Topic': metadata.topic if metadata else '',
                'Platform': (metadata.platform or '') if metadata else '',
                'Views': metadata.view_count if metadata else None,
                'Output': example.output
            })
        return pd.DataFrame(rows, columns=['Source', 'Topic', 'Platform', 'Views', 'Output'])

    def build_topic_frame(self, dataset: TrainingDataset) -> pd.DataFrame:
        """Example count per topic, most frequent first."""
        topics = [example.metadata.topic for example in dataset.examples
                  if example.metadata and example.metadata.topic]
        if not topics:
            return pd.DataFrame(columns=['Topic', 'Examples'])

        counts = pd.Series(topics).value_counts()
        return pd.DataFrame({'Topic': counts.index, 'Examples': counts.values})

    def build_stats_frame(self, report: ValidationReport) -> pd.DataFrame:
        stats = report.stats
        return pd.DataFrame(
            {
                'Input': [stats.avg_input_length, stats.min_input_length, stats.max_input_length],
                'Output': [stats.avg_output_length, stats.min_output_length, stats.max_output_length],
            },
            index=['Average', 'Minimum', 'Maximum']
        )


class DatasetExportComponent:
    """
    Component for exporting a dataset as a file download.
    """

    def __init__(self, exporter: Optional[DatasetExporter] = None):
        self.exporter = exporter or DatasetExporter()

    def render_export_interface(self, dataset: TrainingDataset) -> Dict[str, Any]:
        """
        Render export options and the download button.

        Args:
            dataset: Dataset to export

        Returns:
            Dictionary describing the generated export
        """
        if not dataset.examples:
            st.warning("No examples available for export.")
            return {}

        st.subheader("📥 Export Dataset")

        col1, col2 = st.columns(2)
        with col1:
            format_label = st.radio(
                "Choose export format:",
                options=list(EXPORT_FORMAT_OPTIONS),
                key="export_format_selection"
            )
        export_format = EXPORT_FORMAT_OPTIONS[format_label]

        with col2:
            include_metadata = st.checkbox(
                "Include example metadata",
                value=export_format == FORMAT_JSON,
                key="export_include_metadata",
                help="Fine-tuning tools expect plain input/output lines"
            )

        return self._generate_export(dataset, export_format, include_metadata)

    def _generate_export(self, dataset: TrainingDataset, export_format: str,
                         include_metadata: bool) -> Dict[str, Any]:
        try:
            download = self.exporter.create_downloadable_content(dataset, export_format, include_metadata)
        except ValueError as e:
            logger.error(f"Error generating dataset export: {str(e)}")
            st.error(f"❌ Export failed: {str(e)}")
            return {'error': str(e)}

        st.download_button(
            label=f"📥 Download {export_format.upper()}",
            data=download.content.encode('utf-8'),
            file_name=download.filename,
            mime=download.mime_type,
            key=f"download_{export_format}_button"
        )

        return {
            'success': True,
            'format': export_format,
            'filename': download.filename,
            'content': download.content
        }


class FineTuningComponent:
    """
    Component for starting and monitoring OpenAI fine-tuning jobs.

    The manager is created on first use so the rest of the app works without
    an API key.
    """

    def __init__(self, manager: Optional[FineTuningManager] = None):
        self.manager = manager

    def _get_manager(self) -> Optional[FineTuningManager]:
        if self.manager is None:
            try:
                self.manager = FineTuningManager()
            except ValueError as e:
                st.error(f"❌ Fine-tuning unavailable: {str(e)}")
                return None
        return self.manager

    def render(self, dataset: TrainingDataset, report: ValidationReport) -> Dict[str, Any]:
        """
        Render the fine-tuning controls.

        Args:
            dataset: Dataset to fine-tune on
            report: Validation report of the dataset

        Returns:
            Dictionary with the outcome of any action taken
        """
        if not report.valid:
            st.warning("⚠️ Fix the dataset errors before starting a fine-tuning job.")
            return {}

        suffix = st.text_input(
            "Model suffix (optional)",
            value=st.session_state.get('fine_tuning_suffix', ''),
            max_chars=40,
            help="Appended to the fine-tuned model name"
        )

        result = {}
        if st.button("🚀 Start Fine-Tuning Job", type="primary"):
            result = self.start_job(dataset, suffix.strip() or None)

        self.render_jobs()
        return result

    def start_job(self, dataset: TrainingDataset, suffix: Optional[str] = None) -> Dict[str, Any]:
        manager = self._get_manager()
        if manager is None:
            return {'success': False, 'error': 'Fine-tuning manager unavailable'}

        with st.spinner("Uploading training data and creating job..."):
            success, value = manager.initiate_fine_tuning_job(dataset, suffix=suffix)

        if success:
            st.session_state['fine_tuning_job_id'] = value
            st.success(f"✅ Fine-tuning job started: {value}")
            return {'success': True, 'job_id': value}

        st.error(f"❌ {value}")
        return {'success': False, 'error': value}

    def render_jobs(self):
        """List stored jobs and check the status of one of them."""
        manager = self._get_manager()
        if manager is None:
            return

        jobs = manager.get_stored_fine_tuning_jobs()
        if not jobs:
            st.info("No fine-tuning jobs yet.")
            return

        jobs_frame = pd.DataFrame(jobs)
        columns = [column for column in ['job_id', 'status', 'model_name', 'fine_tuned_model', 'created_at']
                   if column in jobs_frame.columns]
        st.dataframe(jobs_frame[columns], use_container_width=True)

        job_ids = [job['job_id'] for job in reversed(jobs)]
        job_id = st.selectbox("Job to monitor", options=job_ids, key="monitor_job_selection")

        if st.button("📈 Check Status"):
            self.render_job_status(job_id)

    def render_job_status(self, job_id: str) -> Dict[str, Any]:
        status = self._get_manager().monitor_fine_tuning_job(job_id)

        if 'job_id' not in status:
            st.error(f"❌ {status['error']}")
            return status

        progress = status['progress_estimate']
        st.progress(int(progress['percentage']))
        st.write(f"**Status:** {progress['status_description']}")
        if status.get('fine_tuned_model'):
            st.success(f"✅ Fine-tuned model: {status['fine_tuned_model']}")
        if status.get('recent_events'):
            st.dataframe(pd.DataFrame(status['recent_events']), use_container_width=True)
        return status
