# fusionscene

The scene side of a first-person game engine, written in plain Python on top of
numpy. The package works out the data a renderer needs: matrices, vertex and
index buffers, shader uniform values and lists of visible faces. It does not
draw anything itself.

## Installation

```
pip install .
pip install ".[test]"   # with the test dependencies
```

## Modules

- `fusionscene.camera`: `Camera`, a free-look camera. `update_orientation` turns
  cursor movement into yaw and pitch, with pitch clamped to ±89°.
  `move_camera` turns the camera by the cursor's distance from the window
  centre. `update_matrix` rebuilds `projection_matrix`, `view_matrix` and
  `camera_matrix`. Setting `input_locked` makes the camera ignore input. The
  module also has the matrix helpers `perspective`, `orthographic`, `look_at`,
  `rotate_vector` and `angle_between`.
- `fusionscene.bsp_format`: a reader for IBSP (version 0x2e) map files.
  `parse_bsp` parses bytes and `read_bsp` parses a file. Both return a
  `BspFile` of typed records (`Plane`, `Node`, `Leaf`, `Brush`, `BrushSide`,
  `Texture`, `Vertex`, `Face`, `Lightmap`, `VisData`). `BspFile.find_leaf`
  walks the node tree. `parse_spawn_positions` and `parse_light_positions`
  pull spawn points and `light` entities out of the entity text, and
  `swizzle_origin` converts an origin to engine space. Malformed data raises
  `BspError`.
- `fusionscene.bsp_scene`: `BspScene` has these methods:
  - `face_vertex_buffer` gives a face's interleaved position, texture and
    lightmap coordinates.
  - `face_indices` gives a face's indices.
  - `texture_files` resolves texture names to `.tga` or `.jpg` files in a
    directory.
  - `is_cluster_visible` reads the visibility data.
  - `visible_faces` lists the faces to draw from a camera position.
  - `spawn_player` picks a random spawn point.
- `fusionscene.bsp_collision`: `BspCollision` traces a ray, a sphere or an
  axis-aligned box against the solid brushes of a map. A trace slides along the
  surfaces it hits and steps up ledges of up to 22 units. It sets `grounded`,
  `collided` and `try_step`. Its methods are `trace_ray`, `trace_sphere`,
  `trace_box`, `trace_box_hit`, `check_next_position`, `collision_normal` and
  `find_leaf`. `load_collision` builds one from a map file.
- `fusionscene.lighting`: `Lighting` holds a list of `LightBlock` lights.
  `create_light` adds one and `model_uniforms` gives the shader uniform values
  for them. `bsp_light_uniforms` gives the uniform values for the lights of a
  BSP level.
- `fusionscene.gltf`: reads accessors from a glTF document and its binary
  buffer (`read_indices`, `read_floats`). It builds `GltfMesh` objects of
  `SceneVertex` values with `load_mesh` and `load_partition`, and computes node
  transforms with `node_matrix`. `group_vec2` and `group_vec3` group flat float
  lists into vectors. Malformed input raises `GltfError`.
- `fusionscene.model`: `Model` places a mesh by translation, a `(w, x, y, z)`
  rotation and scale. `Model.update_matrix` applies the non-zero parts of a
  change. `Scene` places a level partition by ready-made matrices, and
  `Scene.shader_uniforms` gives the values it is drawn with. The module also
  has the helpers `translate`, `scale`, `quat_to_mat4` and `light_projection`.
- `fusionscene.skybox`: `Skybox` holds the cube's vertices, indices and
  face-image names. Its `view_matrix` has the translation removed, and
  `projection_matrix` gives its own projection.
- `fusionscene.terrain`: `generate_height_map` builds a fractal height map from
  a noise function that you supply. `Terrain` turns a square height map into a
  mesh (`mesh`) and gives the vertical offset for a player standing on it
  (`next_player_position`). `terrain_model_matrix` places the terrain in the
  world. `water_grid` and `water_draw_count` describe a flat water grid.
- `fusionscene.interface`: 2D `Frame`, `Image` and `Label` elements.
  `Frame.uniforms` gives the model matrix, the projection and the shader flags
  for corners and transparency. `normalise_colour` converts 0–255 channels to
  the 0–1 range.
- `fusionscene.viewport`: weapon state for the first-person view.
  `load_weapons` reads weapons from a configuration mapping into `WeaponInfo`
  records. `Viewport.fire` spends ammunition. `Viewport.weapon_offset` and
  `weapon_sway` compute the weapon's sway and bob.
- `fusionscene.network`: a one-shot TCP greeting. `serve_once` accepts one
  client and sends it a greeting. `receive_greeting` connects and returns the
  message.

## Example

```python
from fusionscene.bsp_format import read_bsp
from fusionscene.bsp_collision import BspCollision
from fusionscene.bsp_scene import BspScene

bsp = read_bsp("maps/arena.bsp")

collision = BspCollision(bsp)
new_position = collision.trace_sphere((0.0, 64.0, 0.0), (32.0, 64.0, 0.0), 16.0)
print(new_position, collision.grounded)

scene = BspScene(bsp)
faces = scene.visible_faces(scene.spawn_player())
```

```python
from fusionscene.camera import Camera

camera = Camera(1280, 720, (0.0, 2.0, 5.0))
camera.update_orientation(640.0, 360.0)
camera.update_matrix(75.0, 0.1, 1000.0)
clip = camera.projection_matrix @ camera.view_matrix
```

## What it does not do

- No drawing. The package opens no window and uses no graphics API.
- No texture or image decoding. `texture_files` only finds file names, and
  `Image` only stores the bytes it is given.
- No audio, and no keyboard or mouse handling. You pass in cursor positions and
  times yourself.
- No noise generator. `generate_height_map` needs a noise function from you.
- No command-line program.

## Running the tests

```
pytest
```