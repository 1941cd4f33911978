"""Console UI for devdrive."""
from typing import Dict

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.volume import ProvisionResult


class ConsoleUI:
    """UI class for console output."""
    def __init__(self, console: Console = None):
        self.console = console or Console(stderr=True)

    def print_error(self, error, show_traceback=False):
        """Print error message."""
        self.console.print(f"[red]Error:[/red] {escape(str(error))}")
        if show_traceback:
            self.console.print_exception()

    def display_environment(self, environment: Dict[str, str], title="Environment"):
        """Display environment assignments."""
        table = Table(title=title)
        table.add_column("Variable", style="cyan")
        table.add_column("Value", style="green")
        for key, value in environment.items():
            table.add_row(key, value)
        self.console.print(table)

    def display_result(self, result: ProvisionResult):
        """Display the provisioned volume and its exports."""
        volume = result.volume
        table = Table(title="Dev drive", show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value")
        table.add_row("Mount path", result.mount_path)
        table.add_row("Backing file", volume.backing_path)
        table.add_row("Disk", str(volume.disk_number))
        table.add_row("Filesystem", volume.reported_filesystem or "")
        table.add_row("Disk size", f"{volume.disk_size:,} bytes")
        table.add_row("Volume size", f"{volume.volume_size:,} bytes" if volume.volume_size else "")
        table.add_row("Temp directory", result.tmp_dir)
        self.console.print(table)
        self.display_environment(result.environment, title="Exported environment")
