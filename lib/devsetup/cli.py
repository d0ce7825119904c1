#!/usr/bin/env python3
"""devsetup CLI - Developer machine setup tasks."""

import sys
import click
from functools import partial
from pathlib import Path
from typing import List, Optional
from devsetup.errors import SetupError, ValidationError
from devsetup.git_ssh_task import SetupGitSshTask, TaskStatus, default_ssh_dir
from devsetup.setup_config import TaskConfig, load_setup_file
from devsetup.setup_log import SetupLog
from devsetup.ssh_keys import KEY_TYPES, ensure_provider_available, generate_key_pair, read_public_key
from devsetup.state import CompletionStore
from devsetup.trust import TrustRegistrar


def _config_dir() -> Path:
    return Path.home() / '.devsetup'


def _build_task(config: TaskConfig, ssh_dir: Optional[str], key_type: str,
                token: Optional[str]) -> SetupGitSshTask:
    """Wire a task to the store, log and trust collaborators."""
    config_dir = _config_dir()
    resolved_ssh_dir = Path(ssh_dir).expanduser() if ssh_dir is not None else default_ssh_dir()
    return SetupGitSshTask.from_config(
        config,
        CompletionStore(config_dir / 'state.json'),
        ssh_dir=ssh_dir,
        registrar=TrustRegistrar(resolved_ssh_dir, token=token),
        log=SetupLog(config_dir / 'setup.log'),
        key_generator=partial(generate_key_pair, key_type=key_type),
    )


def _run_tasks(tasks: List[SetupGitSshTask]) -> None:
    """Execute tasks in order, exiting on the first failure."""
    try:
        ensure_provider_available()
    except SetupError as e:
        click.secho(f"❌ {e}", fg='red')
        sys.exit(1)

    for task in tasks:
        click.echo(f"🔧 {task.type_id}: {task.name}@{task.host}")
        try:
            status = task.execute()
        except (SetupError, ValueError) as e:
            click.secho(f"❌ {task.type_id} failed: {e}", fg='red')
            sys.exit(1)

        if status is TaskStatus.SKIPPED:
            click.echo(f"✓ {task.type_id} already done")
            continue

        click.echo(f"✓ Private key: {task.private_key_file}")
        click.echo(f"✓ Added {task.host} to {task.config_file}")
        if task.is_isolated:
            click.echo("  (isolated SSH directory, known hosts not updated)")
        click.echo("\n" + "="*60)
        click.echo(f"📋 Public key for {task.host}:")
        click.echo("="*60)
        click.echo(task.public_key)
        click.echo("="*60 + "\n")


ssh_dir_option = click.option(
    '--ssh-dir', envvar='DEVSETUP_SSH_DIR', type=click.Path(file_okay=False),
    help='SSH directory (default: ~/.ssh). Other directories skip known_hosts.')
key_type_option = click.option(
    '--key-type', '-t', type=click.Choice(KEY_TYPES), default='ed25519',
    show_default=True, help='Key algorithm')
token_option = click.option(
    '--token', envvar='DEVSETUP_GIT_TOKEN',
    help='API token for uploading the public key (GitHub or GitLab)')
upload_option = click.option(
    '--upload/--no-upload', default=False,
    help='Upload the public key to the git provider (needs --token)')


@click.group()
@click.version_option(package_name='devsetup')
def main():
    """Set up a developer machine: SSH identities for git hosts."""
    pass


@main.command('git-ssh')
@click.argument('name')
@click.argument('host')
@click.option('--id', 'task_id', default='1', show_default=True,
              help='Task identifier, distinguishes several git-ssh setups')
@ssh_dir_option
@key_type_option
@token_option
@upload_option
def git_ssh(name: str, host: str, task_id: str, ssh_dir: Optional[str],
            key_type: str, token: Optional[str], upload: bool) -> None:
    """Generate an SSH key for NAME on git HOST and register it."""
    if upload and not token:
        click.secho("❌ --upload requires --token or DEVSETUP_GIT_TOKEN", fg='red')
        sys.exit(1)

    try:
        task = _build_task(TaskConfig(id=task_id, name=name, host=host),
                           ssh_dir, key_type, token if upload else None)
    except ValidationError as e:
        click.secho(f"❌ {e}", fg='red')
        sys.exit(1)

    _run_tasks([task])


@main.command()
@click.argument('setup_file', type=click.Path(exists=True, dir_okay=False))
@ssh_dir_option
@key_type_option
@token_option
@upload_option
def run(setup_file: str, ssh_dir: Optional[str], key_type: str,
        token: Optional[str], upload: bool) -> None:
    """Run every task listed in SETUP_FILE (YAML), in order."""
    if upload and not token:
        click.secho("❌ --upload requires --token or DEVSETUP_GIT_TOKEN", fg='red')
        sys.exit(1)

    try:
        configs = load_setup_file(Path(setup_file))
        tasks = [
            _build_task(config, ssh_dir, key_type, token if upload else None)
            for config in configs
        ]
    except ValueError as e:
        click.secho(f"❌ Error: {e}", fg='red')
        sys.exit(1)

    if not tasks:
        click.echo("No tasks in setup file")
        return

    _run_tasks(tasks)
    click.echo(f"✅ {len(tasks)} task(s) done")


@main.command()
def status() -> None:
    """List completed task identities."""
    store = CompletionStore(_config_dir() / 'state.json')
    try:
        completed = store.completed
    except (SetupError, ValueError) as e:
        click.secho(f"❌ {e}", fg='red')
        sys.exit(1)

    if not completed:
        click.echo("No completed tasks")
        return

    for type_id, finished_at in sorted(completed.items()):
        click.echo(f"✓ {type_id} ({finished_at})")


@main.command('show-key')
@click.argument('name')
@click.argument('host')
@ssh_dir_option
def show_key(name: str, host: str, ssh_dir: Optional[str]) -> None:
    """Print the public key generated for NAME on HOST."""
    if ssh_dir is not None and not ssh_dir.strip():
        click.secho("❌ --ssh-dir must not be empty", fg='red')
        sys.exit(1)
    resolved_ssh_dir = Path(ssh_dir).expanduser() if ssh_dir is not None else default_ssh_dir()
    pub_file = resolved_ssh_dir / f'{name}-{host}.pub'
    if not pub_file.exists():
        click.secho(f"❌ No public key at {pub_file}", fg='red')
        click.echo(f"Run 'devsetup git-ssh {name} {host}' first.")
        sys.exit(1)

    click.echo(read_public_key(pub_file))


if __name__ == '__main__':
    main()
