from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
import inquirer
import getpass

console = Console()


def show_success(message):
    '''Show success message in green'''
    console.print(f"  ✅ {message}", style="bold green")

def show_error(message):
    '''Show error message in red'''
    console.print(f"  ❌ {message}", style="bold red")

def show_warning(message):
    '''Show warning message in yellow'''
    console.print(f"  ⚠️  {message}", style="yellow")

def show_info(message):
    '''Show info message in blue'''
    console.print(f"  ℹ️  {message}", style="bold blue")

def show_header(title):
    '''Show a section header'''
    console.print()
    console.print(f"  === {title} ===", style="bold cyan")

def print_banner(subtitle):
    '''Print the NCSTACK banner'''
    logo = Text()
    logo.append("  _  _  ___ ___ _____ _   ___ _  __\n", style="bold cyan")
    logo.append(" | \\| |/ __/ __|_   _/_\\ / __| |/ /\n", style="bold cyan")
    logo.append(" | .` | (__\\__ \\ | |/ _ \\ (__| ' < \n", style="cyan")
    logo.append(" |_|\\_|\\___|___/ |_/_/ \\_\\___|_|\\_\\\n\n", style="dim cyan")
    logo.append("  v1.0", style="bold white")
    logo.append(f"  |  {subtitle}", style="dim")
    console.print()
    console.print(Panel(logo, border_style="cyan", padding=(1, 2)))
    console.print()

def show_step(message, status="done"):
    '''Show a progress step with vertical connecting line.
    status: "done", "active", "error"
    '''
    icons = {"done": "✅", "active": "⏳", "error": "❌"}
    styles = {"done": "bold green", "active": "bold cyan", "error": "bold red"}
    icon = icons.get(status, "•")
    style = styles.get(status, "white")
    console.print(f"  │", style="dim cyan")
    console.print(f"  ├── {icon} {message}", style=style)

def show_step_final(message, success=True):
    '''Show the final step (uses end connector)'''
    console.print(f"  │", style="dim cyan")
    if success:
        console.print(f"  └── ✅ {message}", style="bold green")
    else:
        console.print(f"  └── ❌ {message}", style="bold red")

def show_step_detail(message):
    '''Show a detail line under a step, maintaining the vertical line'''
    console.print(f"  │     {message}", style="dim green")

def show_step_line():
    '''Show just the vertical connecting line'''
    console.print(f"  │", style="dim cyan")

def step_input(prompt):
    '''Input with vertical line prefix for connected config flow'''
    console.print(f"  │", style="dim cyan", end="")
    return input(f"     {prompt}")

def step_password(prompt):
    '''Hidden input with vertical line prefix'''
    console.print(f"  │", style="dim cyan", end="")
    return getpass.getpass(f"     {prompt}")

def show_result_panel(content, title="Success"):
    '''Show result info in a styled panel'''
    panel = Panel(
        content,
        title=f"[bold green]{title}[/bold green]",
        border_style="green",
        padding=(1, 2)
    )
    console.print()
    console.print(panel)

def show_table(title, columns, rows):
    '''Render rows as a rich table'''
    table = Table(title=title, show_header=True, header_style="bold cyan")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*[str(cell) for cell in row])
    console.print()
    console.print(table)

def select_from_list(message, choices):
    '''Interactive list selection'''
    questions = [
        inquirer.List(
            'selection',
            message=message,
            choices=choices
        )
    ]

    answer = inquirer.prompt(questions)
    if answer is None:
        raise KeyboardInterrupt
    return answer['selection']
