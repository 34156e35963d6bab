"""
alipay-sign Command Line Interface

Provides commands for formatting keys, computing certificate SNs, signing
requests, verifying responses and handling AES content.
"""

import json
import logging
import sys
from typing import List, Optional

import click

from alipay_sign.config import PUBLIC_KEY_LABEL, build_config
from alipay_sign.core.aes import aes_decrypt, aes_encrypt, dumps_json
from alipay_sign.core.canonicalization import sign_request
from alipay_sign.core.cert import get_sn_from_path, load_public_key_from_cert_path
from alipay_sign.core.crypto import format_key
from alipay_sign.core.exceptions import AlipaySignError
from alipay_sign.core.models import KeyType, SignType
from alipay_sign.core.response import check_response_sign, response_key

# Configure click
CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])

SIGN_TYPES = click.Choice([t.value for t in SignType])
KEY_TYPES = click.Choice([t.value for t in KeyType])


# Helper functions
def read_text(file_path: str, encoding: str = 'utf-8') -> str:
    """Read a file exactly as stored; newlines are not translated."""
    try:
        with open(file_path, 'r', encoding=encoding, newline='') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"Error reading {file_path}: {e}", err=True)
        sys.exit(1)


def parse_json_option(value: Optional[str], name: str):
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        click.echo(f"Invalid JSON for {name}: {e}", err=True)
        sys.exit(1)


def parse_params(pairs: List[str]) -> dict:
    """Parse repeated ``key=value`` options."""
    params = {}
    for pair in pairs:
        try:
            key, value = pair.split('=', 1)
        except ValueError:
            click.echo(f"Invalid parameter format: {pair}. Expected KEY=VALUE", err=True)
            sys.exit(1)
        params[key] = value
    return params


def fail(e: AlipaySignError) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


# Command groups
@click.group(context_settings=CONTEXT_SETTINGS)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """alipay-sign - gateway request signing and response verification."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )


# Key commands
@cli.group()
def key():
    """Normalize key material."""
    pass


@key.command('format')
@click.argument('key_file', type=click.Path(exists=True))
@click.option('--label', '-l', default='RSA PRIVATE KEY', show_default=True,
              help='PEM label, e.g. "PRIVATE KEY" or "PUBLIC KEY"')
def format_key_command(key_file: str, label: str):
    """Wrap raw key text in PEM armor."""
    click.echo(format_key(read_text(key_file), label))


# Certificate commands
@cli.group()
def cert():
    """Inspect certificates."""
    pass


@cert.command()
@click.argument('cert_file', type=click.Path(exists=True))
@click.option('--root', is_flag=True, help='Treat the file as a root certificate bundle')
def sn(cert_file: str, root: bool):
    """Print the SN of a certificate or root bundle."""
    try:
        click.echo(get_sn_from_path(cert_file, is_root=root))
    except AlipaySignError as e:
        fail(e)


@cert.command('public-key')
@click.argument('cert_file', type=click.Path(exists=True))
def public_key(cert_file: str):
    """Print the public key of a certificate as PEM."""
    try:
        click.echo(format_key(load_public_key_from_cert_path(cert_file), PUBLIC_KEY_LABEL))
    except AlipaySignError as e:
        fail(e)


# Request commands
@cli.command()
@click.argument('method')
@click.option('--app-id', required=True, help='Application id')
@click.option('--private-key', '-k', required=True, type=click.Path(exists=True),
              help='Path to the application private key')
@click.option('--key-type', type=KEY_TYPES, default=KeyType.PKCS1.value, show_default=True)
@click.option('--sign-type', type=SIGN_TYPES, default=SignType.RSA2.value, show_default=True)
@click.option('--charset', default='utf-8', show_default=True)
@click.option('--biz-content', help='Business content as JSON')
@click.option('--param', '-p', multiple=True, help='Extra parameter in the format KEY=VALUE')
@click.option('--encrypt-key', help='Base64 AES key')
@click.option('--encrypt', is_flag=True, help='AES-encrypt the business content')
def sign(method: str, app_id: str, private_key: str, key_type: str, sign_type: str,
         charset: str, biz_content: Optional[str], param: List[str],
         encrypt_key: Optional[str], encrypt: bool):
    """Sign a request and print its wire parameters as JSON."""
    content = parse_json_option(biz_content, '--biz-content')
    try:
        config = build_config(
            app_id,
            read_text(private_key),
            key_type=key_type,
            sign_type=sign_type,
            charset=charset,
            encrypt_key=encrypt_key,
        )
        envelope = sign_request(
            method,
            config,
            params=parse_params(param),
            biz_content=content,
            need_encrypt=encrypt,
        )
    except AlipaySignError as e:
        fail(e)
    click.echo(json.dumps(envelope.params, indent=2, ensure_ascii=False))


@cli.command()
@click.argument('response_file', type=click.Path(exists=True))
@click.option('--method', '-m', required=True, help='Gateway method the response answers')
@click.option('--public-key', '-k', required=True, type=click.Path(exists=True),
              help='Path to the gateway public key')
@click.option('--sign-type', type=SIGN_TYPES, default=SignType.RSA2.value, show_default=True)
@click.option('--charset', default='utf-8', show_default=True)
def verify(response_file: str, method: str, public_key: str, sign_type: str, charset: str):
    """Verify the signature of a raw response body."""
    raw = read_text(response_file, charset)
    pem = format_key(read_text(public_key), PUBLIC_KEY_LABEL)
    try:
        valid = check_response_sign(raw, response_key(method), pem, SignType(sign_type), charset)
    except AlipaySignError as e:
        fail(e)

    if valid:
        click.echo("Response signature is valid")
        sys.exit(0)
    else:
        click.echo("Invalid response signature", err=True)
        sys.exit(1)


# AES commands
@cli.group()
def aes():
    """Encrypt and decrypt business content."""
    pass


@aes.command()
@click.argument('data')
@click.option('--key', required=True, help='Base64 AES key')
def encrypt(data: str, key: str):
    """Encrypt a JSON document."""
    try:
        click.echo(aes_encrypt(parse_json_option(data, 'DATA'), key))
    except AlipaySignError as e:
        fail(e)


@aes.command()
@click.argument('ciphertext')
@click.option('--key', required=True, help='Base64 AES key')
def decrypt(ciphertext: str, key: str):
    """Decrypt ciphertext and print the JSON document."""
    try:
        click.echo(dumps_json(aes_decrypt(ciphertext, key)))
    except AlipaySignError as e:
        fail(e)


def main():
    cli()


# Main entry point
if __name__ == '__main__':
    main()
