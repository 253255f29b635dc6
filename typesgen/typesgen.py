"""

Command line utility to generate TypeScript type declarations from JSON samples.

"""


import argparse
import json
import logging
import os
import sys
import tempfile
from typesgen import _version

ARG_TYPES = {'str': str, 'int': int, 'float': float}

def load_commands():
    """Load the commands from the commands.json file."""
    commands_path = os.path.join(os.path.dirname(__file__), 'commands.json')
    with open(commands_path, 'r', encoding='utf-8') as f:
        return json.load(f)

def create_subparsers(subparsers, commands):
    """Create subparsers for the commands."""
    for command in commands:
        cmd_parser = subparsers.add_parser(command['command'], help=command['description'])
        for arg in command['args']:
            kwargs = {
                'help': arg['help'],
            }
            if 'nargs' in arg:
                kwargs['nargs'] = arg['nargs']
            if 'choices' in arg:
                kwargs['choices'] = arg['choices']
            if 'default' in arg:
                kwargs['default'] = arg['default']
            if arg['type'] == 'bool':
                kwargs['action'] = 'store_true'
            else:
                kwargs['type'] = ARG_TYPES[arg['type']]
            carg = cmd_parser.add_argument(arg['name'], **kwargs)
            if arg['name'].startswith('-'):
                carg.required = arg.get('required', True)

def dynamic_import(module, func):
    """Dynamically import a module and function."""
    mod = __import__(module, fromlist=[func])
    return getattr(mod, func)

def resolve_function_args(function_args, args, input_file_path, output_file_path):
    """Map the command's function arguments to parsed CLI values."""
    func_args = {}
    for arg, val in function_args.items():
        if val == 'input_file_path':
            func_args[arg] = input_file_path
        elif val == 'output_file_path':
            if output_file_path:
                func_args[arg] = output_file_path
        elif val.startswith('not args.'):
            if hasattr(args, val[9:]):
                func_args[arg] = not getattr(args, val[9:])
        elif val.startswith('args.'):
            if hasattr(args, val[5:]):
                func_args[arg] = getattr(args, val[5:])
        else:
            func_args[arg] = val
    return func_args

def main():
    """Main function for the command line utility."""
    commands = load_commands()
    parser = argparse.ArgumentParser(description='Generate TypeScript type declarations from JSON samples.')
    parser.add_argument('--version', action='store_true', help='Print the version of typesgen.')
    parser.add_argument('--verbose', action='store_true', help='Log debug output to stderr.')

    subparsers = parser.add_subparsers(dest='command')
    create_subparsers(subparsers, commands)

    args = parser.parse_args()

    if 'version' in args and args.version:
        print(f'typesgen {_version.version}')
        return

    if getattr(args, 'verbose', False):
        logging.basicConfig(level=logging.DEBUG)

    if args.command is None:
        parser.print_help()
        return

    temp_input = None
    temp_output = None
    try:
        command = next((cmd for cmd in commands if cmd['command'] == args.command), None)
        if not command:
            print(f"Error: Command {args.command} not found.")
            sys.exit(1)

        input_file_path = getattr(args, 'input', None)
        if not input_file_path:
            temp_input = tempfile.NamedTemporaryFile(delete=False, mode='w', encoding='utf-8')
            input_file_path = temp_input.name
            # read to EOF
            s = sys.stdin.read()
            while s:
                temp_input.write(s)
                s = sys.stdin.read()
            temp_input.flush()
            temp_input.close()

        suppress_print = False
        output_file_path = ''
        if 'out' in args:
            output_file_path = args.out
            if output_file_path is None:
                suppress_print = True
                temp_output = tempfile.NamedTemporaryFile(delete=False, suffix='.ts')
                temp_output.close()
                output_file_path = temp_output.name

        def printmsg(s):
            if not suppress_print:
                print(s)

        module_name, func_name = command['function']['name'].rsplit('.', 1)
        func = dynamic_import(module_name, func_name)
        func_args = resolve_function_args(command['function']['args'], args, input_file_path, output_file_path)
        if output_file_path:
            printmsg(f'Executing {command["description"]} with input {input_file_path} and output {output_file_path}')
        written_path = func(**func_args)

        if temp_output:
            with open(written_path or output_file_path, 'r', encoding='utf-8') as f:
                sys.stdout.write(f.read())
        elif written_path:
            printmsg(f'Type file saved to: {written_path}')

    except Exception as e:  # pylint: disable=broad-except
        print("Error: ", str(e))
        sys.exit(1)
    finally:
        for temp_file in (temp_input, temp_output):
            if temp_file:
                try:
                    os.remove(temp_file.name)
                except OSError as e:
                    print(f"Error: Could not delete temporary file {temp_file.name}. {e}")

if __name__ == "__main__":
    main()
