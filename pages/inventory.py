import logging

import dash
from dash import dcc, html, Output, Input, State, ALL, no_update
import dash_mantine_components as dmc

from services.config import EXTENDED_FEATURES
from services.inventory_api import get_inventory_client
from services.inventory_charts import (
    build_demand_summary_chart,
    build_demand_trend_chart,
    build_stock_health_chart,
)
from services.inventory_metrics import (
    LOW_STOCK,
    OUT_OF_STOCK,
    STATUS_COLORS,
    build_product_rows,
    summarize_inventory,
)
from services.inventory_models import ProductDraft
from services.inventory_state import (
    DraftValidationError,
    InventoryState,
    InventoryViewModel,
)

logger = logging.getLogger(__name__)

dash.register_page(
    __name__,
    path='/',
    name='Inventory',
    title='Inventory Optimization Dashboard'
)

GRAPH_CONFIG = {'displayModeBar': False}


def _view_model(products=None, demand=None, demand_summary=None, stockout_dates=None):
    state = InventoryState.from_store(
        products=products,
        demand=demand,
        demand_summary=demand_summary,
        stockout_dates=stockout_dates,
    )
    return InventoryViewModel(get_inventory_client(), state)


def _clicked_index():
    """Index of the pattern-matched button that fired, ignoring re-renders."""
    ctx = dash.callback_context
    if not ctx.triggered or not ctx.triggered[0]['value']:
        return None
    triggered_id = ctx.triggered_id
    if isinstance(triggered_id, dict):
        return triggered_id.get('index')
    return None


def _kpi_card(title, value_id, color=None):
    return dmc.GridCol(
        dmc.Paper(
            dmc.Stack([
                dmc.Text(title, size='sm', c='dimmed'),
                dmc.Text('0', size='xl', fw=700, id=value_id, style={'color': color} if color else None),
            ], gap=4),
            p='md',
            radius='md',
            withBorder=True,
        ),
        span=4,
    )


def _graph_card(graph_id, span=6):
    return dmc.GridCol(
        dmc.Paper(
            dcc.Graph(id=graph_id, figure={}, config=GRAPH_CONFIG),
            p='md',
            radius='md',
            withBorder=True,
        ),
        span=span,
    )


def _product_form():
    return dmc.Paper(
        dmc.Stack([
            dmc.Text('Add New Product', fw=600),
            dmc.Alert(
                '',
                id='inventory-draft-alert',
                title='Cannot add product',
                color='red',
                hide=True,
                withCloseButton=True,
            ),
            dmc.Group(
                [
                    dmc.TextInput(id='inventory-draft-name', placeholder='Product Name', value=''),
                    dmc.TextInput(id='inventory-draft-sku', placeholder='SKU', value=''),
                    dmc.NumberInput(id='inventory-draft-price', placeholder='Price', value='', min=0),
                    dmc.Button('+ Add Product', id='inventory-btn-add', color='green'),
                ],
                gap='sm',
                align='flex-end',
            ),
        ], gap='sm'),
        p='md',
        radius='md',
        withBorder=True,
        mt='lg',
    )


def _table_header():
    columns = ['ID', 'Product', 'SKU', 'Price', 'Status', 'Stock']
    if EXTENDED_FEATURES:
        columns.append('Stockout Date')
    columns.append('Actions')
    return dmc.TableThead(dmc.TableTr([dmc.TableTh(col) for col in columns]))


def _row_actions(row):
    index = str(row['product_id'])
    buttons = []
    if EXTENDED_FEATURES:
        buttons.extend([
            dmc.Button(
                '− Sell',
                id={'type': 'inventory-sell-btn', 'index': index},
                size='xs',
                color='orange',
                variant='light',
                disabled=not row['can_sell'],
            ),
            dmc.Button(
                '+ Restock',
                id={'type': 'inventory-restock-btn', 'index': index},
                size='xs',
                color='green',
                variant='light',
            ),
        ])
    buttons.append(
        dmc.Button(
            'Delete',
            id={'type': 'inventory-delete-btn', 'index': index},
            size='xs',
            color='red',
            variant='light',
        )
    )
    return dmc.Group(buttons, gap='xs', wrap='nowrap')


def _stockout_cell(row):
    return dmc.Group(
        [
            dmc.Text(row['stockout_date'], size='sm'),
            dmc.Button(
                'Predict',
                id={'type': 'inventory-stockout-btn', 'index': str(row['product_id'])},
                size='compact-xs',
                variant='subtle',
            ),
        ],
        gap='xs',
        wrap='nowrap',
    )


def _table_row(row):
    cells = [
        dmc.TableTd(row['product_id']),
        dmc.TableTd(row['product_name']),
        dmc.TableTd(row['stock_keeping_unit']),
        dmc.TableTd(row['price']),
        dmc.TableTd(row['status_label'], style={'color': row['status_color'], 'fontWeight': 'bold'}),
        dmc.TableTd(row['stock']),
    ]
    if EXTENDED_FEATURES:
        cells.append(dmc.TableTd(_stockout_cell(row)))
    cells.append(dmc.TableTd(_row_actions(row)))
    return dmc.TableTr(cells)


def layout():
    charts = [_graph_card('inventory-health-fig', span=6 if EXTENDED_FEATURES else 12)]
    extended_sections = []
    if EXTENDED_FEATURES:
        charts.append(_graph_card('inventory-demand-summary-fig', span=6))
        extended_sections = [
            dmc.Paper(
                dmc.Stack([
                    dcc.Graph(id='inventory-demand-trend-fig', figure={}, config=GRAPH_CONFIG),
                    dmc.Group(id='inventory-product-selector', gap='xs'),
                ]),
                p='md',
                radius='md',
                withBorder=True,
                mt='lg',
            ),
        ]

    toolbar = [dmc.Button('Refresh', id='inventory-btn-refresh', variant='light', size='xs')]
    if EXTENDED_FEATURES:
        toolbar.append(
            dmc.Button('Predict All Stockouts', id='inventory-btn-stockout-all', variant='light', size='xs')
        )

    return dmc.Container(
        [
            dcc.Store(id='inventory-products-store'),
            dcc.Store(id='inventory-demand-store'),
            dcc.Store(id='inventory-demand-summary-store'),
            dcc.Store(id='inventory-stockout-store', data={}),
            dcc.Store(id='inventory-pending-delete'),
            dcc.ConfirmDialog(id='inventory-confirm-delete', message='Are you sure you want to Delete this product?'),

            dmc.Group(
                [
                    dmc.Stack([
                        dmc.Title('Inventory Optimization Dashboard', order=2),
                        dmc.Text('Stock levels, demand and product maintenance.', c='dimmed'),
                    ], gap=0),
                    dmc.Group(toolbar, gap='xs'),
                ],
                justify='space-between',
                align='flex-end',
            ),

            # KPI Cards Row
            dmc.Grid(
                [
                    _kpi_card('Total Products', 'inventory-kpi-total'),
                    _kpi_card('Low Stock', 'inventory-kpi-low', STATUS_COLORS[LOW_STOCK]),
                    _kpi_card('Out of Stock', 'inventory-kpi-out', STATUS_COLORS[OUT_OF_STOCK]),
                ],
                gutter='lg',
                mt='md',
            ),

            # Charts Row
            dmc.Grid(charts, gutter='lg', mt='lg'),
            *extended_sections,

            _product_form(),

            # Products Table
            dmc.Paper(
                dmc.Stack([
                    dmc.Text('Products', fw=600),
                    dmc.Table(
                        [_table_header(), dmc.TableTbody(id='inventory-table-body')],
                        striped=True,
                        highlightOnHover=True,
                    ),
                ]),
                p='md',
                radius='md',
                withBorder=True,
                mt='lg',
            ),
        ],
        size='xl',
        py='lg'
    )


# ---------- Reads ----------

@dash.callback(
    Output('inventory-products-store', 'data'),
    Input('inventory-btn-refresh', 'n_clicks'),
    State('inventory-products-store', 'data'),
    prevent_initial_call=False,
)
def load_products(n_clicks, products):
    vm = _view_model(products=products)
    if not vm.refresh_products():
        # Previous collection stays on screen
        return no_update
    return vm.state.to_store()['products']


@dash.callback(
    Output('inventory-kpi-total', 'children'),
    Output('inventory-kpi-low', 'children'),
    Output('inventory-kpi-out', 'children'),
    Output('inventory-health-fig', 'figure'),
    Input('inventory-products-store', 'data'),
)
def update_kpis(products):
    summary = summarize_inventory(InventoryState.from_store(products=products).products)
    return (
        f'{summary.total_products:,}',
        f'{summary.low_stock_count:,}',
        f'{summary.out_of_stock_count:,}',
        build_stock_health_chart(summary),
    )


@dash.callback(
    Output('inventory-table-body', 'children'),
    Input('inventory-products-store', 'data'),
    Input('inventory-stockout-store', 'data'),
)
def update_products_table(products, stockout_dates):
    state = InventoryState.from_store(products=products, stockout_dates=stockout_dates)
    rows = build_product_rows(state.products, state.stockout_dates)
    if not rows:
        colspan = 8 if EXTENDED_FEATURES else 7
        return [html.Tr(html.Td('No products loaded.', colSpan=colspan, style={'color': 'gray'}))]
    return [_table_row(row) for row in rows]


# ---------- Mutations ----------

@dash.callback(
    Output('inventory-products-store', 'data', allow_duplicate=True),
    Output('inventory-draft-alert', 'children'),
    Output('inventory-draft-alert', 'hide'),
    Output('inventory-draft-name', 'value'),
    Output('inventory-draft-sku', 'value'),
    Output('inventory-draft-price', 'value'),
    Input('inventory-btn-add', 'n_clicks'),
    State('inventory-draft-name', 'value'),
    State('inventory-draft-sku', 'value'),
    State('inventory-draft-price', 'value'),
    State('inventory-products-store', 'data'),
    prevent_initial_call=True,
)
def add_product(n_clicks, name, sku, price, products):
    draft = ProductDraft(
        product_name=name or '',
        stock_keeping_unit=sku or '',
        unit_price='' if price is None else price,
    )
    vm = _view_model(products=products)
    try:
        empty_draft = vm.submit_draft(draft)
    except DraftValidationError as e:
        return no_update, str(e), False, no_update, no_update, no_update

    if empty_draft is None:
        return no_update, '', True, no_update, no_update, no_update

    return (
        vm.state.to_store()['products'],
        '',
        True,
        empty_draft.product_name,
        empty_draft.stock_keeping_unit,
        empty_draft.unit_price,
    )


@dash.callback(
    Output('inventory-confirm-delete', 'displayed'),
    Output('inventory-pending-delete', 'data'),
    Input({'type': 'inventory-delete-btn', 'index': ALL}, 'n_clicks'),
    prevent_initial_call=True,
)
def request_delete(n_clicks):
    product_id = _clicked_index()
    if product_id is None:
        return no_update, no_update
    return True, product_id


@dash.callback(
    Output('inventory-products-store', 'data', allow_duplicate=True),
    Input('inventory-confirm-delete', 'submit_n_clicks'),
    State('inventory-pending-delete', 'data'),
    State('inventory-products-store', 'data'),
    prevent_initial_call=True,
)
def confirm_delete(submit_n_clicks, product_id, products):
    if not submit_n_clicks or product_id is None:
        return no_update
    vm = _view_model(products=products)
    if not vm.delete_product(product_id, confirmed=True):
        return no_update
    return vm.state.to_store()['products']


# ---------- Extended features ----------

if EXTENDED_FEATURES:

    @dash.callback(
        Output('inventory-demand-summary-store', 'data'),
        Input('inventory-btn-refresh', 'n_clicks'),
        prevent_initial_call=False,
    )
    def load_demand_summary(n_clicks):
        vm = _view_model()
        if not vm.fetch_demand_summary():
            return no_update
        return vm.state.to_store()['demand_summary']

    @dash.callback(
        Output('inventory-demand-summary-fig', 'figure'),
        Input('inventory-demand-summary-store', 'data'),
    )
    def update_demand_summary_chart(demand_summary):
        state = InventoryState.from_store(demand_summary=demand_summary)
        return build_demand_summary_chart(state.demand_summary)

    @dash.callback(
        Output('inventory-demand-store', 'data'),
        Input('inventory-products-store', 'data'),
        prevent_initial_call=True,
    )
    def select_first_product(products):
        vm = _view_model(products=products)
        if not vm.state.products:
            return no_update
        if not vm.fetch_demand_trend(vm.state.products[0].product_id):
            return no_update
        return vm.state.to_store()['demand']

    @dash.callback(
        Output('inventory-demand-store', 'data', allow_duplicate=True),
        Input({'type': 'inventory-product-btn', 'index': ALL}, 'n_clicks'),
        State('inventory-products-store', 'data'),
        prevent_initial_call=True,
    )
    def select_product(n_clicks, products):
        index = _clicked_index()
        if index is None:
            return no_update
        vm = _view_model(products=products)
        product = vm.state.get_product(index)
        product_id = product.product_id if product is not None else index
        if not vm.fetch_demand_trend(product_id):
            return no_update
        return vm.state.to_store()['demand']

    @dash.callback(
        Output('inventory-demand-trend-fig', 'figure'),
        Output('inventory-product-selector', 'children'),
        Input('inventory-demand-store', 'data'),
        Input('inventory-products-store', 'data'),
    )
    def update_demand_trend(demand, products):
        state = InventoryState.from_store(products=products, demand=demand)
        selected = state.selected_product_id
        product = state.get_product(selected) if selected is not None else None

        buttons = [
            dmc.Button(
                p.product_name or str(p.product_id),
                id={'type': 'inventory-product-btn', 'index': str(p.product_id)},
                size='xs',
                variant='filled' if selected is not None and str(p.product_id) == str(selected) else 'outline',
            )
            for p in state.products
        ]
        figure = build_demand_trend_chart(
            state.demand_trend,
            product.product_name if product is not None else None,
        )
        return figure, buttons

    @dash.callback(
        Output('inventory-products-store', 'data', allow_duplicate=True),
        Input({'type': 'inventory-sell-btn', 'index': ALL}, 'n_clicks'),
        Input({'type': 'inventory-restock-btn', 'index': ALL}, 'n_clicks'),
        State('inventory-products-store', 'data'),
        prevent_initial_call=True,
    )
    def adjust_stock(sell_clicks, restock_clicks, products):
        index = _clicked_index()
        if index is None:
            return no_update
        vm = _view_model(products=products)
        product = vm.state.get_product(index)
        if product is None:
            logger.warning("Stock action for unknown product %s", index)
            return no_update

        if dash.callback_context.triggered_id['type'] == 'inventory-sell-btn':
            changed = vm.sell(product.product_id)
        else:
            changed = vm.restock(product.product_id)

        if not changed:
            return no_update
        return vm.state.to_store()['products']

    @dash.callback(
        Output('inventory-stockout-store', 'data'),
        Input({'type': 'inventory-stockout-btn', 'index': ALL}, 'n_clicks'),
        Input('inventory-btn-stockout-all', 'n_clicks'),
        State('inventory-products-store', 'data'),
        State('inventory-stockout-store', 'data'),
        prevent_initial_call=True,
    )
    def predict_stockout(row_clicks, all_clicks, products, stockout_dates):
        vm = _view_model(products=products, stockout_dates=stockout_dates)
        if dash.callback_context.triggered_id == 'inventory-btn-stockout-all':
            if not all_clicks or not vm.fetch_all_stockout_dates():
                return no_update
            return vm.state.to_store()['stockout_dates']

        index = _clicked_index()
        if index is None:
            return no_update
        product = vm.state.get_product(index)
        product_id = product.product_id if product is not None else index
        if not vm.fetch_stockout_date(product_id):
            return no_update
        return vm.state.to_store()['stockout_dates']
