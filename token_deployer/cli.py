# token_deployer/cli.py
"""
CLI del workflow:  flask --app wsgi token deploy --name Test --symbol TST --supply 1000

Cada comando abre una sesión nueva (connect primero), igual que una
recarga de la página.
"""
import click
from flask import current_app
from flask.cli import AppGroup

from token_deployer.services.api_client import DeployerApiClient
from token_deployer.services.chain_connector import WalletConnector
from token_deployer.services.web3_client import make_w3
from token_deployer.errors import WalletUnavailable
from token_deployer.workflow import SessionState, WorkflowController

token_cli = AppGroup("token", help="Deploy ERC20 tokens and call their owner functions.")


def _echo_progress(state: SessionState) -> None:
    if state.message and not state.error:
        click.echo(state.message)


def build_controller() -> WorkflowController:
    cfg = current_app.config
    try:
        w3 = make_w3(cfg.get("WEB3_PROVIDER_URI"), cfg.get("WEB3_USE_POA"))
    except WalletUnavailable:
        w3 = None  # connect() reporta WalletUnavailable
    connector = WalletConnector(w3, private_key=cfg.get("PRIVATE_KEY"), receipt_timeout=cfg["RECEIPT_TIMEOUT"])
    api = DeployerApiClient(cfg["DEPLOYER_API_URL"], timeout=cfg["HTTP_TIMEOUT"])
    return WorkflowController(connector, api, cfg["TARGET_CHAIN"], listener=_echo_progress)


def _connected(controller: WorkflowController) -> SessionState:
    return _finish(controller.connect(SessionState()))


def _finish(state: SessionState) -> SessionState:
    if state.error:
        click.secho(state.error, fg="red", err=True)
        raise click.exceptions.Exit(1)
    return state


def _load(controller: WorkflowController, state: SessionState, address: str) -> SessionState:
    record = next((t for t in state.tokens if t["contractAddress"].lower() == address.lower()), None)
    if record is None:
        click.secho(f"{address} is not a token deployed by {state.wallet_address}", fg="red", err=True)
        raise click.exceptions.Exit(1)
    return _finish(controller.select_existing(state, record))


@token_cli.command("deploy")
@click.option("--name", "name", required=True, help="Token name, e.g. 'My Token'.")
@click.option("--symbol", required=True, help="Token symbol, e.g. MTK.")
@click.option("--supply", required=True, help="Total supply (whole tokens).")
def deploy_command(name, symbol, supply):
    """Generate, compile and deploy a new token."""
    controller = build_controller()
    state = _finish(controller.deploy(_connected(controller), name, symbol, supply))
    for fn in state.owner_functions:
        click.echo(f"  {fn['name']}({', '.join(i['type'] for i in fn['inputs'])})")


@token_cli.command("list")
def list_command():
    """List the tokens deployed by the connected wallet."""
    state = _connected(build_controller())
    if not state.tokens:
        click.echo("No tokens deployed yet.")
    for t in state.tokens:
        click.echo(f"{t['contractAddress']}  {t['tokenName']} ({t['tokenSymbol']})  supply={t['tokenSupply']}  chain={t['chainId']}")


@token_cli.command("functions")
@click.argument("address")
def functions_command(address):
    """Show the owner functions of a previously deployed token."""
    controller = build_controller()
    state = _load(controller, _connected(controller), address)
    for fn in state.owner_functions:
        params = ", ".join(f"{i['type']} {i['name']}" for i in fn["inputs"])
        click.echo(f"{fn['name']}({params})")


@token_cli.command("execute")
@click.argument("address")
@click.argument("function")
@click.argument("args", nargs=-1)
def execute_command(address, function, args):
    """Call an owner function on a previously deployed token."""
    controller = build_controller()
    state = _load(controller, _connected(controller), address)
    _finish(controller.execute_function(state, function, list(args)))
