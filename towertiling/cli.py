"""Click CLI commands for towertiling."""

import logging
from typing import Optional

import click

from .errors import TowerTilingError
from .tiling import load_tiling
from .tiling_mesh import TilingMesh

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """Generate quasiperiodic tower tilings and export them as GLB."""
    pass


def _traced(tiling_path: str) -> TilingMesh:
    tiling = load_tiling(tiling_path)
    tiling_mesh = TilingMesh(tiling)
    tiling_mesh.compute_mesh()
    return tiling_mesh


@cli.command()
@click.argument('tiling_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', default='towers.glb', help='Output GLB file path')
@click.option('--base-obj', default=None, help='Also dump the traced tiling as OBJ')
@click.option('--obj-prefix', default=None, help='Also write one OBJ per tower with this prefix')
@click.option('--stl', 'stl_path', default=None, help='Also write all towers as one STL')
@click.option('--repeat', '-r', default=0, type=click.IntRange(min=0),
              help='Instance the patch over a (2r+1)x(2r+1) block of translations')
def build(tiling_path: str, output: str, base_obj: Optional[str],
          obj_prefix: Optional[str], stl_path: Optional[str], repeat: int):
    """Build towers for TILING_PATH and write them as a GLB file."""
    try:
        tiling_mesh = _traced(tiling_path)
        if base_obj:
            tiling_mesh.save_base(base_obj)

        towers = tiling_mesh.make_towers()
        stats = towers.stats()
        logger.info(f"Towers: {stats['towers']}, faces: {stats['faces']}, "
                    f"triangles: {stats['triangles']}")

        if obj_prefix:
            towers.save_obj(obj_prefix)
        if stl_path:
            towers.save_stl(stl_path)

        translations = tiling_mesh.instance_translations(repeat)
        path = towers.save_glb(output, tiling_mesh.tiling.materials, translations)
        click.echo(f"Wrote {stats['towers']} towers x {len(translations)} "
                   f"instances to {path}")
    except TowerTilingError as e:
        logger.error(f"Error building towers: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.argument('tiling_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', default='base.obj', help='Output OBJ file path')
def base(tiling_path: str, output: str):
    """Trace the faces of TILING_PATH and dump them as OBJ."""
    try:
        tiling_mesh = _traced(tiling_path)
        path = tiling_mesh.save_base(output)
        click.echo(f"Wrote {len(tiling_mesh.mesh.faces)} faces to {path}")
    except TowerTilingError as e:
        logger.error(f"Error tracing tiling: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.argument('tiling_path', type=click.Path(exists=True, dir_okay=False))
def info(tiling_path: str):
    """Print seeds, star directions and traced face sizes."""
    try:
        tiling_mesh = _traced(tiling_path)
    except TowerTilingError as e:
        logger.error(f"Error tracing tiling: {e}")
        raise click.ClickException(str(e))

    tiling = tiling_mesh.tiling
    click.echo(f"Basis: {tiling.basis.value}")
    click.echo(f"Translations: {tiling.translations[0]} {tiling.translations[1]}")
    click.echo(f"Lattice points: {len(tiling_mesh.cloud)}")
    for i, seed in enumerate(tiling.seeds):
        star = tiling_mesh.star_directions(i)
        sides = [tiling_mesh.mesh.face_degree(f)
                 for f, (s, _) in enumerate(tiling_mesh.anchored_faces) if s == i]
        click.echo(f"  seed {i} {seed.position}: star={star} faces={sides}")
    click.echo(f"Faces: {len(tiling_mesh.mesh.faces)}")


if __name__ == '__main__':
    cli()
