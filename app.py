import gradio as gr
import uvicorn
from functools import partial

from field_explorer.api import create_app
from field_explorer.config import API_HOST, API_PORT
from field_explorer.gateway import Gateway
from field_explorer.handlers import (
    FIELD_TABLE_HEADERS,
    MAPPING_HEADERS,
    export_fields_handler,
    fetch_api_handler,
    filter_fields_handler,
    import_fields_handler,
    preview_handler,
    update_mapping_table,
)
from field_explorer.models import FIELD_FORMATS

gateway = Gateway()

# --- UI Definition ---
with gr.Blocks(title="API Field Explorer") as demo:
    gr.Markdown("# API Field Explorer")
    gr.Markdown("Point at a finance API, browse its response fields, and preview them as cards, tables or charts.")

    # State
    json_data_state = gr.State()

    with gr.Row():
        # Left Panel: Fetch & Browse
        with gr.Column(scale=1):
            gr.Markdown("### 1. Fetch")
            url_input = gr.Textbox(label="API URL", placeholder="https://api.coingecko.com/api/v3/coins/markets?vs_currency=usd")
            headers_table = gr.Dataframe(
                headers=["Key", "Value"],
                datatype=["str", "str"],
                col_count=(2, "fixed"),
                interactive=True,
                label="Custom Headers",
            )
            fetch_btn = gr.Button("Test API", variant="primary")
            status_msg = gr.Textbox(label="Status", interactive=False)

            gr.Markdown("### 2. Browse Fields")
            with gr.Row():
                search_input = gr.Textbox(label="Search paths", scale=3)
                arrays_only = gr.Checkbox(label="Arrays only", value=False, scale=1)
            field_table = gr.Dataframe(
                headers=FIELD_TABLE_HEADERS,
                datatype=["str", "str", "str"],
                interactive=False,
                label="Available Fields",
            )
            raw_preview = gr.JSON(label="Raw Response")

        # Right Panel: Selection & Preview
        with gr.Column(scale=1):
            gr.Markdown("### 3. Select Fields")
            field_selector = gr.Dropdown(
                label="Selected Fields",
                choices=[],
                value=[],
                multiselect=True,
                allow_custom_value=True,
                interactive=True,
            )
            gr.Markdown("Rename labels or pick a format (" + ", ".join(FIELD_FORMATS) + ").")
            mapping_table = gr.Dataframe(
                headers=MAPPING_HEADERS,
                datatype=["str", "str", "str"],
                col_count=(3, "fixed"),
                interactive=True,
                label="Field Mapping",
            )

            gr.Markdown("### 4. Preview")
            with gr.Row():
                sort_column = gr.Textbox(label="Sort table by column", scale=3)
                sort_desc = gr.Checkbox(label="Descending", value=False, scale=1)
                table_page = gr.Number(label="Page", value=1, precision=0, minimum=1, scale=1)
            preview_btn = gr.Button("Load Preview")
            with gr.Tab("Card"):
                card_output = gr.Markdown()
            with gr.Tab("Table"):
                table_output = gr.Dataframe(interactive=False)
                page_info = gr.Markdown()
            with gr.Tab("Chart"):
                chart_output = gr.LinePlot(x="x", y="value", color="series")

            gr.Markdown("### 5. Save Selection")
            fields_json = gr.Code(label="Fields (JSON)", language="json", interactive=True)
            with gr.Row():
                export_btn = gr.Button("Export Fields")
                import_btn = gr.Button("Import Fields")

    fetch_btn.click(
        fn=partial(fetch_api_handler, gateway),
        inputs=[url_input, headers_table],
        outputs=[json_data_state, status_msg, field_table, field_selector, mapping_table, raw_preview],
    )

    search_input.change(
        fn=filter_fields_handler,
        inputs=[json_data_state, search_input, arrays_only],
        outputs=[field_table],
    )

    arrays_only.change(
        fn=filter_fields_handler,
        inputs=[json_data_state, search_input, arrays_only],
        outputs=[field_table],
    )

    field_selector.change(
        fn=update_mapping_table,
        inputs=[field_selector, mapping_table],
        outputs=[mapping_table],
    )

    preview_btn.click(
        fn=preview_handler,
        inputs=[json_data_state, mapping_table, sort_column, sort_desc, table_page],
        outputs=[card_output, table_output, page_info, chart_output],
    )

    export_btn.click(
        fn=export_fields_handler,
        inputs=[mapping_table],
        outputs=[fields_json],
    )

    import_btn.click(
        fn=import_fields_handler,
        inputs=[fields_json],
        outputs=[field_selector, mapping_table, status_msg],
    )

if __name__ == "__main__":
    # Serve the gateway API and the explorer UI from one process.
    app = gr.mount_gradio_app(create_app(gateway), demo, path="/")
    uvicorn.run(app, host=API_HOST, port=API_PORT)
