import click


@click.group()
def main():
    """
    Manages cdn assets.
    """
    pass


@main.command()
@click.pass_context
def publish(clickctx):
    """
    Compiles all bundles and uploads them to the CDN.
    """
    cdnassets = clickctx.obj['conf'].load('cdnassets')
    try:
        cdnassets.publish()
    except Exception as e:
        raise click.ClickException(str(e)) from e


@main.command()
@click.option('--production/--development', default=None,
              help='Render for given mode instead of the configured one.')
@click.argument('kind', type=click.Choice(['js', 'css', 'less']))
@click.argument('name')
@click.pass_context
def tag(clickctx, kind, name, production):
    """
    Renders the HTML tags of a bundle.
    """
    cdnassets = clickctx.obj['conf'].load('cdnassets')
    if production is not None:
        cdnassets.set_production(production)
    print(getattr(cdnassets, kind)(name))


@main.command()
@click.pass_context
def cachebuster(clickctx):
    """
    Provides the active cachebuster.
    """
    cdnassets = clickctx.obj['conf'].load('cdnassets')
    print(cdnassets.cdn.cachebuster)


if __name__ == '__main__':
    main()
